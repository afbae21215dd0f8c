"""
telegram_bot.py — Sign Spotlight Telegram Bot

Flow:
  /start
    → user sends a photo (or an image as a file)
    → validation (type + 4MB cap, from Telegram metadata, before download)
    → "Apply spotlight" inline button
    → Gemini edit (one request in flight per user)
    → result sent back as <name>_spotlight.png

Commands:
  /start  — intro
  /reset  — forget the current image and result
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from spotlight.client import SpotlightClient
from spotlight.session import Failed, SpotlightSession, Succeeded
from spotlight.source import SourceImage, guess_media_type, validate_source

logger = logging.getLogger(__name__)

# ── Keyboards ─────────────────────────────────────────────────────────────────

PROCESS_CALLBACK = "spotlight_go"


def process_keyboard(upload_idx: int) -> InlineKeyboardMarkup:
    """'Apply spotlight' button bound to one upload."""
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("✨ Apply spotlight", callback_data=f"{PROCESS_CALLBACK}:{upload_idx}")],
    ])


# ── Context keys ──────────────────────────────────────────────────────────────

CLIENT_KEY = "client"
SESSION_KEY = "session"
TEMP_DIR_KEY = "temp_dir"
UPLOAD_COUNT_KEY = "upload_count"
LATEST_UPLOAD_KEY = "latest_upload"

PHOTO_NAME = "photo.jpg"
PHOTO_MEDIA_TYPE = "image/jpeg"


# ── Helpers ───────────────────────────────────────────────────────────────────

def escape_md(text: str) -> str:
    """Escape special chars for Telegram MarkdownV2."""
    special = r"\_*[]()~`>#+-=|{}.!"
    return "".join(f"\\{c}" if c in special else c for c in text)


def get_session(context: ContextTypes.DEFAULT_TYPE) -> SpotlightSession:
    if SESSION_KEY not in context.user_data:
        client: SpotlightClient = context.bot_data[CLIENT_KEY]
        context.user_data[SESSION_KEY] = SpotlightSession(client)
    return context.user_data[SESSION_KEY]


def _upload_path(context: ContextTypes.DEFAULT_TYPE, name: str) -> Tuple[int, Path]:
    """Next upload index and a fresh path for it in the user's temp dir."""
    tmp_dir = context.user_data.get(TEMP_DIR_KEY)
    if not tmp_dir:
        tmp_dir = tempfile.mkdtemp(prefix="spotlight_")
        context.user_data[TEMP_DIR_KEY] = tmp_dir
    idx = context.user_data.get(UPLOAD_COUNT_KEY, 0) + 1
    context.user_data[UPLOAD_COUNT_KEY] = idx
    return idx, Path(tmp_dir) / f"{idx:03d}_{Path(name).name}"


def _callback_upload_idx(data: str) -> Optional[int]:
    _, _, idx = data.rpartition(":")
    return int(idx) if idx.isdigit() else None


def _discard(source: SourceImage) -> None:
    """Remove an upload nobody can process any more."""
    source.path.unlink(missing_ok=True)


def _cleanup(context: ContextTypes.DEFAULT_TYPE) -> None:
    tmp_dir = context.user_data.pop(TEMP_DIR_KEY, None)
    context.user_data.pop(LATEST_UPLOAD_KEY, None)
    if tmp_dir:
        shutil.rmtree(tmp_dir, ignore_errors=True)


async def safe_edit(context: ContextTypes.DEFAULT_TYPE, chat_id: int, msg_id: int, text: str) -> None:
    """Edit a message, ignoring 'message not modified' errors."""
    try:
        await context.bot.edit_message_text(
            chat_id=chat_id,
            message_id=msg_id,
            text=text,
            parse_mode=ParseMode.MARKDOWN_V2,
        )
    except BadRequest as e:
        logger.debug("edit_message_text skipped: %s", e)


# ── /start, /reset ────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    get_session(context)
    await update.message.reply_text(
        "👋 Welcome to *Sign Spotlight*\\!\n\n"
        "Send me a photo of a shop front or a street sign\\. "
        "The AI keeps the sign in colour and turns everything else black and white\\.\n\n"
        "_PNG, JPG, WEBP — max 4MB\\. Send it as a file to keep full quality\\._",
        parse_mode=ParseMode.MARKDOWN_V2,
    )


async def cmd_reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    get_session(context).reset()
    _cleanup(context)
    await update.message.reply_text(
        "🔄 Cleared\\. Send a new photo whenever you're ready\\.",
        parse_mode=ParseMode.MARKDOWN_V2,
    )


# ── Image selection ───────────────────────────────────────────────────────────

async def _select_upload(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    file_id: str,
    name: str,
    media_type: Optional[str],
    size: int,
) -> None:
    session = get_session(context)

    message = validate_source(name, media_type, size)
    if message:
        session.reject(message)
        await update.message.reply_text(f"⚠️ {escape_md(message)}", parse_mode=ParseMode.MARKDOWN_V2)
        return

    # The session only sees the file once it is fully on disk.
    idx, path = _upload_path(context, name)
    try:
        file = await context.bot.get_file(file_id)
        await file.download_to_drive(str(path))
    except Exception:
        path.unlink(missing_ok=True)
        raise

    previous = session.source
    session.select(name=name, media_type=media_type, size=size, path=path)
    context.user_data[LATEST_UPLOAD_KEY] = idx
    if previous is not None and previous is not session.in_flight:
        _discard(previous)

    note = "\n\n_A previous image is still processing; its result will be discarded\\._" if session.is_loading else ""
    await update.message.reply_text(
        f"📸 Got *{escape_md(name)}* \\({size / 1024:.0f} KB\\)\\.{note}",
        parse_mode=ParseMode.MARKDOWN_V2,
        reply_markup=process_keyboard(idx),
    )


async def on_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    photo = update.message.photo[-1]
    await _select_upload(
        update, context,
        file_id=photo.file_id,
        name=PHOTO_NAME,
        media_type=PHOTO_MEDIA_TYPE,
        size=photo.file_size or 0,
    )


async def on_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    doc = update.message.document
    name = doc.file_name or "image"
    await _select_upload(
        update, context,
        file_id=doc.file_id,
        name=name,
        media_type=doc.mime_type or guess_media_type(name),
        size=doc.file_size or 0,
    )


async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(
        "📎 Send a photo \\(or an image file\\) to get started\\.",
        parse_mode=ParseMode.MARKDOWN_V2,
    )


# ── Processing ────────────────────────────────────────────────────────────────

async def _show_progress(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    progress_msg = await query.edit_message_text(
        "⏳ *The AI is analysing the image\\.\\.\\.*\n\n_This can take a few seconds\\._",
        parse_mode=ParseMode.MARKDOWN_V2,
    )
    await context.bot.send_chat_action(
        chat_id=update.effective_chat.id, action=ChatAction.UPLOAD_DOCUMENT
    )
    return progress_msg.message_id


async def on_process(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    session = get_session(context)

    if session.is_loading:
        await query.answer("⏳ Already processing, please wait...")
        return
    if not session.can_process:
        await query.answer("Send a new photo first.")
        return
    if _callback_upload_idx(query.data) != context.user_data.get(LATEST_UPLOAD_KEY):
        await query.answer("This image was replaced by a newer one.")
        return

    chat_id = update.effective_chat.id
    source = session.source
    # Nothing awaited between the guards and process(), which marks the session busy.
    progress = asyncio.create_task(_show_progress(update, context))
    state = await session.process()
    # Succeeded / Failed can't be processed again and a stale upload is dead.
    _discard(source)
    msg_id = await progress

    if isinstance(state, Succeeded):
        await safe_edit(context, chat_id, msg_id, "✅ *Done\\!*")
        await context.bot.send_document(
            chat_id=chat_id,
            document=state.result.data,
            filename=state.download_name,
            caption="✨ Sign spotlight",
        )
    elif isinstance(state, Failed):
        await safe_edit(
            context, chat_id, msg_id,
            f"❌ *Oops\\! Something went wrong\\.*\n\n{escape_md(state.message)}",
        )
    else:
        # Superseded by a newer selection while in flight.
        await safe_edit(context, chat_id, msg_id, "⏭ Skipped, a newer image was selected\\.")


# ── Error handler ─────────────────────────────────────────────────────────────

async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Exception while handling update:", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text(
            "⚠️ Something went wrong\\. Send the photo again to retry\\.",
            parse_mode=ParseMode.MARKDOWN_V2,
        )


# ── App builder ───────────────────────────────────────────────────────────────

def build_app(token: str, client: SpotlightClient) -> Application:
    # Concurrent updates so one user's Gemini call doesn't block everyone else;
    # SpotlightSession keeps each user to one request in flight.
    app = Application.builder().token(token).concurrent_updates(True).build()
    app.bot_data[CLIENT_KEY] = client

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("reset", cmd_reset))
    app.add_handler(MessageHandler(filters.PHOTO, on_photo))
    app.add_handler(MessageHandler(filters.Document.ALL, on_document))
    app.add_handler(CallbackQueryHandler(on_process, pattern=rf"^{PROCESS_CALLBACK}:\d+$"))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))
    app.add_error_handler(error_handler)
    return app
