# src/task_pinger/connectors/matrix_client.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from nio import AsyncClient, AsyncClientConfig, LoginResponse

logger = logging.getLogger(__name__)


def _session_path(store_dir: Path) -> Path:
    return store_dir / "session.json"


def _load_session(path: Path) -> dict[str, str]:
    data = json.loads(path.read_text("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Expected JSON object")

    out: dict[str, str] = {}
    for key in ("access_token", "user_id", "device_id"):
        value = data.get(key)
        if not value:
            raise ValueError(f"session.json is missing {key}")
        out[key] = str(value)
    return out


def _write_session(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.debug("Could not restrict permissions of %s", path, exc_info=True)


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Create a Matrix AsyncClient for the bot account.

    The access token and device id are persisted in <matrix_store_path>/session.json
    after the first password login, so restarts do not create new devices.
    The file holds a credential and must stay in a gitignored directory.
    """
    homeserver = (getattr(settings, "matrix_homeserver", "") or "").strip()
    user_id = (getattr(settings, "matrix_user_id", "") or "").strip()
    password = (getattr(settings, "matrix_password", "") or "").strip()
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/pinger/matrix_store")))

    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set PINGER_MATRIX_HOMESERVER and PINGER_MATRIX_USER_ID")
        return None

    store_dir.mkdir(parents=True, exist_ok=True)
    session_file = _session_path(store_dir)

    client = AsyncClient(
        homeserver,
        user_id,
        config=AsyncClientConfig(store_sync_tokens=False),
    )

    if session_file.exists():
        try:
            session = _load_session(session_file)
        except (OSError, ValueError) as e:
            logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)
        else:
            client.access_token = session["access_token"]
            client.user_id = session["user_id"]
            client.device_id = session["device_id"]
            logger.info("Matrix session restored for %s", client.user_id)
            return client

    if not password:
        logger.error(
            "Matrix session.json not found and password is not set. "
            "Set PINGER_MATRIX_PASSWORD once to bootstrap a session."
        )
        await client.close()
        return None

    device_name = f"{getattr(settings, 'app_name', 'task-pinger')} (Python)"
    logger.info("Logging in to Matrix to bootstrap a new session (device_name=%r)...", device_name)

    resp = await client.login(password=password, device_name=device_name)
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    try:
        _write_session(
            session_file,
            {"access_token": resp.access_token, "user_id": resp.user_id, "device_id": resp.device_id},
        )
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
    except OSError as e:
        # The client is logged in; only the next restart will need the password again.
        logger.error("Failed to write Matrix session.json (%s): %r", session_file, e)

    return client
