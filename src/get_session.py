"""Session authorization for lorekeeper.

A bot token from config.json signs in as a bot. Without one the session is a
user account, authorized by QR code or phone code.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)

QR_TIMEOUT_SECONDS = 120


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    return os.getenv("2FA") or getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    _print_qr(qr.url)
    try:
        await qr.wait(timeout=QR_TIMEOUT_SECONDS)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    try:
        await client.sign_in(phone=phone, code=code)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


def _pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    choices = {"1": "qr", "2": "phone"}
    while True:
        print("")
        print("Login methods:")
        print("[1] QR code")
        print("[2] Phone code")
        print("[3] Exit")
        choice = input("lorekeeper > ").strip()
        if choice in choices:
            return choices[choice]
        if choice == "3":
            raise SystemExit(0)
        print("Invalid option. Please choose 1, 2, or 3.")


async def authorize(client: TelegramClient, bot_token: str = "") -> None:
    """Make sure ``client`` is signed in, prompting only when needed."""

    if await client.is_user_authorized():
        return

    if bot_token:
        LOGGER.info("Signing in with bot token")
        await client.sign_in(bot_token=bot_token)
        return

    if _pick_login_method() == "phone":
        await _authorize_with_phone(client)
    else:
        await _authorize_with_qr(client)
