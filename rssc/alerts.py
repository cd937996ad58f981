from __future__ import annotations

import smtplib
from email.message import EmailMessage
from threading import Thread

from .events import log_event
from .models import Address
from .settings import Settings, settings as default_settings


def _email_configured(cfg: Settings) -> bool:
    required = (cfg.smtp_host, cfg.smtp_port, cfg.smtp_user, cfg.smtp_password, cfg.email_from, cfg.email_to)
    return cfg.enable_email and all(required)


def send_email(subject: str, body: str, cfg: Settings = default_settings) -> bool:
    """Deliver one alert over SMTP with STARTTLS. Blocks for at most the SMTP timeout per step.

    Needs RSSC_ENABLE_EMAIL=true plus the RSSC_SMTP_* and RSSC_EMAIL_FROM/TO variables.
    """
    if not _email_configured(cfg):
        return False

    msg = EmailMessage()
    msg["From"] = cfg.email_from
    msg["To"] = cfg.email_to
    msg["Subject"] = subject
    msg.set_content(body)
    try:
        with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout_s) as server:
            server.starttls()
            server.login(cfg.smtp_user, cfg.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        log_event("ERROR", f"Alert email failed: {type(e).__name__}: {e}")
        return False
    return True


def master_changed(
    master_name: str, old: Address | None, new: Address, source: str, cfg: Settings = default_settings
) -> Thread | None:
    """Send the master-change email on a daemon thread so callers never wait on SMTP."""
    if not _email_configured(cfg):
        return None
    subject = f"Redis master changed: {master_name} -> {new}"
    body = f"Group: {master_name}\nOld master: {old or 'unknown'}\nNew master: {new}\nDetected by: {source}\n"
    thr = Thread(target=send_email, args=(subject, body, cfg), name="rssc-alert", daemon=True)
    thr.start()
    return thr
