"""
Discord message text for citations and arrest reports.
"""

import base64
import binascii
import re
from typing import Tuple

from ledger import format_currency, parse_amount
from penal_codes import CITATION_CATALOG, describe_codes

PAYMENT_RECIPIENT_ID = "1392657393724424313"
CITATION_COURT_ADDRESS = "4000 Capitol Drive, Greenville, Wisconsin 54942"
CITATION_COURT_DATE = "XX/XX/XX"
CITATION_COURT_PHONE = "(262) 785-4700 ext. 7"

_DATA_URL_RE = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[^;,]*)*(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)
_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}
_TRAILING_NUMBER_RE = re.compile(r"\s+\d+$")


def mention(value: str, fallback: str = "") -> str:
    """Render a numeric Discord id as a mention, anything else in bold."""
    value = (value or "").strip()
    if value.isdigit():
        return f"<@{value}>"
    return f"**{value or fallback}**"


def decode_data_url(data_url: str) -> Tuple[str, bytes, str]:
    """Split a ``data:`` URL (or bare base64) into ``(filename, bytes, content type)``."""
    match = _DATA_URL_RE.match(data_url.strip())
    if match:
        content_type = match.group("type") or "application/octet-stream"
        payload = match.group("data")
        if not match.group("b64"):
            raise ValueError("Mugshot data URL must be base64 encoded")
    else:
        content_type, payload = "image/png", data_url.strip()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Mugshot is not valid base64: {e}") from e
    if not data:
        raise ValueError("Mugshot is empty")
    filename = f"mugshot.{_EXTENSIONS.get(content_type, 'bin')}"
    return filename, data, content_type


def _rank_signature(officer) -> str:
    rank = _TRAILING_NUMBER_RE.sub("", officer.rank).strip()
    if officer.user_id:
        return f"{rank} <@{officer.user_id}>"
    return rank


def format_citation_message(record) -> str:
    officers = record.officers
    ticket_type = describe_codes(record.penal_codes, CITATION_CATALOG, record.violation_type or "Citation")
    penal_codes = ", ".join(f"**{code}**" for code in record.penal_codes)
    rank_signature = "\n".join(_rank_signature(officer) for officer in officers)
    total = format_currency(record.total_amount)

    return f"""Ping User Receiving Ticket: <@{record.violator_username}>
Type of Ticket: **{ticket_type}**
Penal Code: {penal_codes}
Total Amount Due: **{total}**
Additional Notes: **{record.additional_notes or 'N/A'}**

Rank and Signature: **{rank_signature}**
Law Enforcement Name(s): **{', '.join(o.username for o in officers)}**
Badge Number: **{', '.join(o.badge for o in officers)}**

By signing this citation, you acknowledge that this is NOT an admission of guilt, it is to simply ensure the citation is taken care of. Your court date is shown below, and failure to show will result in a warrant for your arrest. If you have any questions, please contact a Supervisor.

You must pay the citation to <@{PAYMENT_RECIPIENT_ID}>

Sign at the X: <@{record.violator_signature}>

{CITATION_COURT_ADDRESS}

Court date: {CITATION_COURT_DATE}
Please call {CITATION_COURT_PHONE} for further inquiry."""


def format_offense_line(code: str, amount: str, jail_time: str) -> str:
    """``**(1)04** - **60 Seconds** - **$1,000.00**``

    Jail time "None" and a zero fine are left off the line.
    """
    line = f"**{code}**"
    if jail_time and jail_time != "None":
        line += f" - **{jail_time}**"
    if amount and parse_amount(amount) != 0:
        line += f" - **{format_currency(amount)}**"
    return line


def format_arrest_message(record, summary, has_attachment: bool = False) -> str:
    officers = record.officers
    offenses = "\n".join(format_offense_line(*offense) for offense in record.offenses)
    signatures = "\n".join(
        f"Arresting officer signature X: {mention(officer.user_id, officer.username)}"
        for officer in officers
    )
    if record.description:
        description = f"**{record.description}**"
    elif has_attachment:
        description = "**See attached mugshot**"
    else:
        description = "**No description provided**"

    remaining = summary.remaining_jail_time_seconds
    served = " **(TIME SERVED)**" if record.time_served else ""

    return f"""**Arrest Report**

Officer's Username: {', '.join(mention(o.user_id, o.username) for o in officers)}
Law Enforcement username(s): {', '.join(f'**{o.username}**' for o in officers)}
Ranks: {', '.join(f'**{o.rank}**' for o in officers)}
Badge Number: {', '.join(f'**{o.badge}**' for o in officers)}

Description/Mugshot
{description}

---
Offense:
{offenses}

Total: **{format_currency(summary.total_fine_amount)}** + **{summary.total_jail_time_seconds} Seconds**{served}

**Warrant Information:**
Warrant Needed: **{'Yes' if summary.warrant_needed else 'No'}**
Time Needed for Warrant: **{remaining} Seconds**

Sign at the X:
{mention(record.suspect_signature)}

{signatures}

{record.court_location}

Court date: **{record.court_date}**
Please call **{record.court_phone}** for further inquiry."""
