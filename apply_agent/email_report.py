"""Send the application report by email (plain text plus HTML)."""
from __future__ import annotations

import html
import os
import re
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from apply_agent.log import get_logger
from apply_agent.retry import retry

log = get_logger(__name__)

_TH = "border:1px solid #ddd;padding:6px 8px;background:#f2f2f2;text-align:left"
_TD = "border:1px solid #ddd;padding:5px 8px;background:{bg}"


def _inline(text: str) -> str:
    text = html.escape(text, quote=False)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2" target="_blank">\1</a>', text)
    return text


def md_to_html(md: str) -> str:
    """Render the subset of markdown the report uses: headings, tables, bullets."""
    parts: list[str] = []
    in_table = False

    for line in md.split("\n"):
        stripped = line.strip()
        is_row = stripped.startswith("|") and stripped.endswith("|")

        if in_table and not is_row:
            parts.append("</table>")
            in_table = False

        if not stripped:
            continue
        if stripped.startswith("## "):
            parts.append(f"<h3>{_inline(stripped[3:])}</h3>")
        elif stripped.startswith("# "):
            parts.append(f"<h2>{_inline(stripped[2:])}</h2>")
        elif is_row:
            cells = [c.strip() for c in stripped.split("|")[1:-1]]
            if all(set(c) <= {"-", " ", ":"} for c in cells):
                continue
            if not in_table:
                parts.append('<table style="border-collapse:collapse;width:100%;font-size:13px">')
                parts.append("<tr>" + "".join(f'<th style="{_TH}">{_inline(c)}</th>' for c in cells) + "</tr>")
                in_table = True
                continue
            bg = "#e8f5e9" if "applied" in cells else "#fff"
            style = _TD.format(bg=bg)
            parts.append("<tr>" + "".join(f'<td style="{style}">{_inline(c)}</td>' for c in cells) + "</tr>")
        elif stripped.startswith("- "):
            parts.append(f'<div style="margin:2px 0 2px 16px">• {_inline(stripped[2:])}</div>')
        else:
            parts.append(f"<p style='margin:4px 0'>{_inline(stripped)}</p>")

    if in_table:
        parts.append("</table>")
    return "\n".join(parts)


@retry(max_attempts=3, base_delay=3.0, retryable=(smtplib.SMTPException, OSError))
def _smtp_send(
    host: str, port: int, user: str, password: str,
    from_addr: str, to_addrs: list[str], msg: MIMEMultipart,
) -> None:
    with smtplib.SMTP(host, port) as server:
        server.starttls()
        server.login(user, password)
        server.sendmail(from_addr, to_addrs, msg.as_string())


def send_report_email(
    body: str,
    recipients: list[str],
    subject: str | None = None,
) -> tuple[bool, str]:
    host = os.environ.get("SMTP_HOST", "").strip()
    port_str = os.environ.get("SMTP_PORT", "587").strip()
    user = os.environ.get("SMTP_USER", "").strip()
    password = os.environ.get("SMTP_PASSWORD", "").strip()
    from_addr = os.environ.get("FROM_EMAIL", user).strip()
    to_addrs = [r.strip() for r in recipients if r and r.strip()]

    if not all([host, user, password]) or not to_addrs:
        return False, "SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD, EMAIL_RECIPIENT in .env)"

    try:
        port = int(port_str)
    except ValueError:
        port = 587

    if not subject:
        subject = f"Job Application Report - {datetime.now(timezone.utc).strftime('%Y-%m-%d')}"

    html_body = (
        "<div style=\"font-family:-apple-system,'Segoe UI',Roboto,sans-serif;max-width:1000px;"
        f"margin:0 auto;padding:16px;color:#333\">\n{md_to_html(body)}\n</div>"
    )

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = ", ".join(to_addrs)
    msg.attach(MIMEText(body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        _smtp_send(host, port, user, password, from_addr, to_addrs, msg)
        log.info("Email sent to %s", ", ".join(to_addrs))
        return True, "Email sent"
    except Exception as e:
        log.error("Email failed: %s", e)
        return False, str(e)[:150]
