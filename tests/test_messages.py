import pytest

from messages import (
    PAYMENT_RECIPIENT_ID,
    decode_data_url,
    format_arrest_message,
    format_citation_message,
    format_offense_line,
    mention,
)
from records import ArrestRecord, CitationRecord


def test_mention():
    assert mention("111222333") == "<@111222333>"
    assert mention("Deputy Dawg") == "**Deputy Dawg**"
    assert mention("", "Unknown") == "**Unknown**"


def test_citation_message(citation_payload):
    message = format_citation_message(CitationRecord.model_validate(citation_payload))
    assert message.startswith("Ping User Receiving Ticket: <@444555666>\n")
    assert "Type of Ticket: **Speeding (6-15 MPH Over), Petty Theft**" in message
    assert "Penal Code: **(8)15**, **(2)08**" in message
    assert "Total Amount Due: **$1,250.00**" in message
    assert "Additional Notes: **Pulled over on Route 9**" in message
    assert "Rank and Signature: **Sergeant <@111222333>**" in message
    assert "Badge Number: **1234**" in message
    assert f"You must pay the citation to <@{PAYMENT_RECIPIENT_ID}>" in message
    assert "Sign at the X: <@444555666>" in message
    assert "Court date: XX/XX/XX" in message


def test_citation_message_without_notes(citation_payload):
    del citation_payload["additionalNotes"]
    message = format_citation_message(CitationRecord.model_validate(citation_payload))
    assert "Additional Notes: **N/A**" in message


def test_offense_line():
    assert format_offense_line("(1)04", "1000.00", "60 Seconds") == "**(1)04** - **60 Seconds** - **$1,000.00**"
    assert format_offense_line("(2)01", "0.00", "210 Seconds") == "**(2)01** - **210 Seconds**"
    assert format_offense_line("(8)15", "250.00", "None") == "**(8)15** - **$250.00**"


def test_arrest_message(arrest_payload):
    record = ArrestRecord.model_validate(arrest_payload)
    message = format_arrest_message(record, record.summary())
    assert message.startswith("**Arrest Report**")
    assert "Officer's Username: <@111222333>, <@777888999>" in message
    assert "Badge Number: **1234**, **5678**" in message
    assert "**Tall, red jacket**" in message
    assert "**(1)04** - **60 Seconds** - **$1,000.00**\n**(2)01** - **210 Seconds**" in message
    assert "Total: **$1,000.00** + **270 Seconds**" in message
    assert "Warrant Needed: **Yes**" in message
    assert "Time Needed for Warrant: **120 Seconds**" in message
    assert "Sign at the X:\n<@444555666>" in message
    assert "Arresting officer signature X: <@777888999>" in message


def test_arrest_message_time_served(arrest_payload):
    arrest_payload["timeServed"] = True
    record = ArrestRecord.model_validate(arrest_payload)
    message = format_arrest_message(record, record.summary())
    assert "**(TIME SERVED)**" in message
    assert "Warrant Needed: **No**" in message


def test_arrest_message_with_mugshot(arrest_payload):
    del arrest_payload["description"]
    arrest_payload["mugshotBase64"] = "data:image/png;base64,iVBORw0KGgo="
    record = ArrestRecord.model_validate(arrest_payload)
    assert "**See attached mugshot**" in format_arrest_message(record, record.summary(), has_attachment=True)


def test_decode_data_url():
    filename, data, content_type = decode_data_url("data:image/jpeg;base64,aGVsbG8=")
    assert (filename, data, content_type) == ("mugshot.jpg", b"hello", "image/jpeg")


def test_decode_bare_base64():
    assert decode_data_url("aGVsbG8=") == ("mugshot.png", b"hello", "image/png")


@pytest.mark.parametrize("value", ["data:image/png,hello", "data:image/png;base64,***", "data:image/png;base64,"])
def test_decode_data_url_rejects(value):
    with pytest.raises(ValueError):
        decode_data_url(value)
