import pytest

from form_session import (
    DEFAULT_COURT_LOCATION,
    MAX_OFFICERS,
    OFFICER_STORAGE_KEY,
    FormSession,
    OfficerProfileCache,
    OfficerRoster,
)
from penal_codes import ARREST, CITATION
from records import ArrestRecord, CitationRecord


def fill_officer(roster, officer_id, **overrides):
    values = {"badge": "1234", "display_name": "Deputy Dawg", "rank": "Sergeant", "discord_user_id": "111222333"}
    values.update(overrides)
    roster.update(officer_id, **values)


def test_roster_is_capped_at_three_officers():
    roster = OfficerRoster()
    assert roster.add() is not None
    assert roster.add() is not None
    assert len(roster) == MAX_OFFICERS
    assert roster.add() is None
    assert len(roster) == MAX_OFFICERS


def test_last_officer_cannot_be_removed():
    roster = OfficerRoster()
    only = next(iter(roster)).officer_id
    assert not roster.remove(only)
    extra = roster.add()
    assert roster.remove(extra)
    assert not roster.remove("missing")


def test_roles():
    roster = OfficerRoster()
    first = next(iter(roster)).officer_id
    second = roster.add()
    assert roster.role_of(first, CITATION) == "Primary"
    assert roster.role_of(first, ARREST) == "Arresting"
    assert roster.role_of(second, ARREST) == "Assisting"


def test_update_strips_and_rejects_unknown_fields():
    roster = OfficerRoster()
    officer = next(iter(roster))
    roster.update(officer.officer_id, badge="  42 ")
    assert officer.badge == "42"
    with pytest.raises(AttributeError):
        roster.update(officer.officer_id, shoe_size="10")


def test_profile_cache_round_trip():
    storage = {}
    cache = OfficerProfileCache(storage)
    roster = OfficerRoster()
    officer = next(iter(roster))
    fill_officer(roster, officer.officer_id, signature="111222333")

    cache.save(roster)
    assert storage[OFFICER_STORAGE_KEY]["officerBadges"] == ["1234"]
    assert "officerSignatures" not in storage[OFFICER_STORAGE_KEY]

    loaded = next(iter(cache.load()))
    assert (loaded.badge, loaded.display_name, loaded.rank, loaded.discord_user_id) == (
        "1234", "Deputy Dawg", "Sergeant", "111222333")
    assert loaded.signature == ""


def test_profile_cache_keeps_arrest_signatures():
    storage = {}
    cache = OfficerProfileCache(storage)
    roster = OfficerRoster()
    fill_officer(roster, next(iter(roster)).officer_id, signature="111222333")
    cache.save(roster, include_signatures=True)

    # a citation save must not drop the signatures an arrest form stored
    cache.save(roster)
    assert next(iter(cache.load(include_signatures=True))).signature == "111222333"


def test_profile_cache_empty_and_clear():
    storage = {}
    cache = OfficerProfileCache(storage)
    assert cache.load() is None
    storage[OFFICER_STORAGE_KEY] = {"officerBadges": []}
    assert cache.load() is None
    cache.clear()
    assert OFFICER_STORAGE_KEY not in storage


def test_unknown_kind():
    with pytest.raises(ValueError):
        FormSession("parking")


def test_citation_validation_errors():
    form = FormSession(CITATION)
    errors = form.validate()
    assert set(errors) == {"officers", "penalCodes", "violatorUsername", "violatorSignature"}


def test_arrest_validation_errors():
    form = FormSession(ARREST)
    assert set(form.validate()) == {"officers", "penalCodes", "suspectSignature", "officerSignatures"}


def test_unselected_extra_row_fails_validation():
    form = FormSession(CITATION)
    fill_officer(form.roster, next(iter(form.roster)).officer_id)
    form.ledger.select_code(form.ledger.rows[0].row_id, "(8)15")
    form.ledger.add_row()
    assert "penalCodes" in form.validate()


def test_set_field():
    form = FormSession(ARREST)
    form.set_field("timeServed", "on")
    assert form.time_served is True
    form.set_field("description", "  tall  ")
    assert form.fields["description"] == "tall"
    with pytest.raises(KeyError):
        form.set_field("violatorUsername", "x")


def test_citation_payload_validates():
    form = FormSession(CITATION)
    fill_officer(form.roster, next(iter(form.roster)).officer_id)
    form.ledger.select_code(form.ledger.rows[0].row_id, "(8)15")
    form.ledger.select_code(form.ledger.add_row(), "(2)08")
    form.set_field("violatorUsername", "444555666")
    form.set_field("violatorSignature", "444555666")
    assert form.validate() == {}

    payload = form.to_payload()
    assert payload["penalCodes"] == ["(8)15", "(2)08"]
    assert payload["amountsDue"] == ["250.00", "1000.00"]
    assert payload["totalAmount"] == "1250.00"
    assert payload["totalJailTime"] == "0 Seconds"

    record = CitationRecord.model_validate(payload)
    assert record.total_amount == "1250.00"


def test_arrest_payload_uses_remaining_time():
    form = FormSession(ARREST)
    fill_officer(form.roster, next(iter(form.roster)).officer_id, signature="111222333")
    form.ledger.select_code(form.ledger.rows[0].row_id, "(1)04")
    form.ledger.set_remaining(45)
    form.set_field("suspectSignature", "444555666")
    form.set_field("description", "Tall, red jacket")

    payload = form.to_payload(mugshot_base64="data:image/png;base64,aGVsbG8=")
    assert payload["totalJailTime"] == "45 Seconds"
    assert payload["jailTimes"] == ["60 Seconds"]
    assert payload["courtLocation"] == DEFAULT_COURT_LOCATION
    assert "mugshotBase64" not in payload

    summary = ArrestRecord.model_validate(payload).summary()
    assert summary.remaining_jail_time_seconds == 45
    assert summary.warrant_needed is True

    form.set_field("timeServed", True)
    assert form.to_payload()["totalJailTime"] == "0 Seconds"


def test_clear_keeps_officers_but_not_signatures():
    form = FormSession(ARREST)
    officer = next(iter(form.roster))
    fill_officer(form.roster, officer.officer_id, signature="111222333")
    form.ledger.select_code(form.ledger.rows[0].row_id, "(1)04")
    form.set_field("suspectSignature", "444555666")

    form.clear(keep_officers=True)
    assert next(iter(form.roster)).badge == "1234"
    assert next(iter(form.roster)).signature == ""
    assert form.ledger.selected_codes() == []
    assert form.fields["suspectSignature"] == ""

    form.clear(keep_officers=False)
    assert next(iter(form.roster)).badge == ""


def test_session_round_trip():
    form = FormSession(ARREST)
    fill_officer(form.roster, next(iter(form.roster)).officer_id)
    form.ledger.select_code(form.ledger.rows[0].row_id, "(1)04")
    form.ledger.set_remaining(10)
    form.set_field("timeServed", True)

    restored = FormSession.from_dict(form.to_dict())
    assert restored.kind == ARREST
    assert restored.ledger.selected_codes() == ["(1)04"]
    assert restored.ledger.remaining_seconds == 10
    assert restored.time_served is True
    assert next(iter(restored.roster)).badge == "1234"
