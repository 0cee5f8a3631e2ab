"""
Server-side state for the citation and arrest forms.

A ``FormSession`` lives in the signed cookie session between requests. Officer
identity is cached separately by ``OfficerProfileCache`` so it survives a
submission while the offense rows are reset.
"""

import uuid
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from ledger import OffenseLedger, format_jail_time
from penal_codes import ARREST, CITATION, catalog_for

MAX_OFFICERS = 3
OFFICER_STORAGE_KEY = "lawEnforcementOfficerData"

DEFAULT_COURT_DATE = "XX/XX/XX"
DEFAULT_COURT_LOCATION = "4000 Capitol Drive, Greenville, Wisconsin 54942"
DEFAULT_COURT_PHONE = "(262) 785-4700 ext. 7"


@dataclass
class OfficerEntry:
    officer_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    badge: str = ""
    display_name: str = ""
    rank: str = ""
    discord_user_id: str = ""
    signature: str = ""

    def is_complete(self) -> bool:
        return all((self.badge.strip(), self.display_name.strip(), self.rank.strip(), self.discord_user_id.strip()))


class OfficerRoster:
    """One primary officer plus up to two assisting officers."""

    def __init__(self, officers: Optional[List[OfficerEntry]] = None):
        self.officers: List[OfficerEntry] = list(officers)[:MAX_OFFICERS] if officers else [OfficerEntry()]

    def _find(self, officer_id: str) -> Optional[OfficerEntry]:
        return next((officer for officer in self.officers if officer.officer_id == officer_id), None)

    def add(self) -> Optional[str]:
        if len(self.officers) >= MAX_OFFICERS:
            return None
        officer = OfficerEntry()
        self.officers.append(officer)
        return officer.officer_id

    def remove(self, officer_id: str) -> bool:
        if len(self.officers) <= 1:
            return False
        officer = self._find(officer_id)
        if officer is None:
            return False
        self.officers.remove(officer)
        return True

    def update(self, officer_id: str, **fields) -> bool:
        officer = self._find(officer_id)
        if officer is None:
            return False
        for name, value in fields.items():
            if not hasattr(officer, name) or name == "officer_id":
                raise AttributeError(f"Unknown officer field: {name}")
            setattr(officer, name, (value or "").strip())
        return True

    def role_of(self, officer_id: str, kind: str = CITATION) -> str:
        index = next(i for i, officer in enumerate(self.officers) if officer.officer_id == officer_id)
        if index == 0:
            return "Arresting" if kind == ARREST else "Primary"
        return "Assisting"

    def __len__(self):
        return len(self.officers)

    def __iter__(self):
        return iter(self.officers)


class OfficerProfileCache:
    """Keeps officer identity in a mapping (the cookie session) under a fixed key."""

    def __init__(self, storage: dict, key: str = OFFICER_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def save(self, roster: OfficerRoster, include_signatures: bool = False):
        officers = list(roster)
        data = {
            "officerBadges": [o.badge for o in officers],
            "officerUsernames": [o.display_name for o in officers],
            "officerRanks": [o.rank for o in officers],
            "officerUserIds": [o.discord_user_id for o in officers],
        }
        if include_signatures:
            data["officerSignatures"] = [o.signature for o in officers]
        else:
            previous = self.storage.get(self.key) or {}
            if previous.get("officerSignatures"):
                data["officerSignatures"] = previous["officerSignatures"]
        self.storage[self.key] = data

    def load(self, include_signatures: bool = False) -> Optional[OfficerRoster]:
        data = self.storage.get(self.key)
        if not data:
            return None
        badges = [badge for badge in data.get("officerBadges") or [] if badge is not None]
        if not badges:
            return None

        def column(name):
            values = [value for value in data.get(name) or [] if value is not None]
            return values + [""] * (len(badges) - len(values))

        names, ranks, user_ids = column("officerUsernames"), column("officerRanks"), column("officerUserIds")
        signatures = column("officerSignatures") if include_signatures else [""] * len(badges)
        officers = [
            OfficerEntry(badge=badges[i], display_name=names[i], rank=ranks[i],
                         discord_user_id=user_ids[i], signature=signatures[i])
            for i in range(min(len(badges), MAX_OFFICERS))
        ]
        return OfficerRoster(officers)

    def clear(self):
        self.storage.pop(self.key, None)


class FormSession:
    """Everything one officer has typed into a citation or arrest form."""

    def __init__(self, kind: str):
        if kind not in (CITATION, ARREST):
            raise ValueError(f"Unknown report kind: {kind}")
        self.kind = kind
        self.ledger = OffenseLedger(catalog_for(kind))
        self.roster = OfficerRoster()
        self.fields: Dict[str, object] = self._default_fields()

    def _default_fields(self) -> Dict[str, object]:
        if self.kind == CITATION:
            return {
                "violatorUsername": "",
                "violatorSignature": "",
                "violationType": "Citation",
                "additionalNotes": "",
            }
        return {
            "description": "",
            "timeServed": False,
            "suspectSignature": "",
            "courtDate": DEFAULT_COURT_DATE,
            "courtLocation": DEFAULT_COURT_LOCATION,
            "courtPhone": DEFAULT_COURT_PHONE,
        }

    @property
    def time_served(self) -> bool:
        return bool(self.fields.get("timeServed"))

    def set_field(self, name: str, value):
        if name not in self.fields:
            raise KeyError(name)
        if isinstance(self.fields[name], bool):
            self.fields[name] = bool(value)
        else:
            self.fields[name] = str(value or "").strip()

    def clear(self, keep_officers: bool = True):
        self.ledger.clear()
        self.fields = self._default_fields()
        if keep_officers:
            for officer in self.roster:
                officer.signature = ""
        else:
            self.roster = OfficerRoster()

    def validate(self) -> Dict[str, str]:
        """Eager checks run before anything is sent to the API."""
        errors: Dict[str, str] = {}
        if not all(officer.is_complete() for officer in self.roster):
            errors["officers"] = "Badge, name, rank and Discord user ID are required for every officer"
        if not self.ledger.selected_codes() or any(row.code is None for row in self.ledger.rows):
            errors["penalCodes"] = "Penal code is required"
        if self.kind == CITATION:
            if not self.fields["violatorUsername"]:
                errors["violatorUsername"] = "Violator username is required"
            if not self.fields["violatorSignature"]:
                errors["violatorSignature"] = "Violator signature is required"
        else:
            if not self.fields["suspectSignature"]:
                errors["suspectSignature"] = "Suspect signature is required"
            if not all(officer.signature for officer in self.roster):
                errors["officerSignatures"] = "Officer signature is required"
        return errors

    def to_payload(self, mugshot_base64: Optional[str] = None) -> dict:
        officers = list(self.roster)
        rows = self.ledger.rows
        totals = self.ledger.totals()
        payload = {
            "officerBadges": [o.badge for o in officers],
            "officerUsernames": [o.display_name for o in officers],
            "officerRanks": [o.rank for o in officers],
            "officerUserIds": [o.discord_user_id for o in officers],
            "penalCodes": [row.code or "" for row in rows],
            "amountsDue": [row.fine_amount for row in rows],
            "jailTimes": [row.jail_time for row in rows],
            "totalAmount": totals.total_fine_amount,
        }
        payload.update(self.fields)
        if self.kind == CITATION:
            payload["totalJailTime"] = format_jail_time(totals.total_jail_time_seconds)
        else:
            remaining = 0 if self.time_served else self.ledger.remaining_seconds
            payload["totalJailTime"] = format_jail_time(remaining)
            payload["officerSignatures"] = [o.signature for o in officers]
            if mugshot_base64 and not self.fields["description"]:
                payload["mugshotBase64"] = mugshot_base64
        return payload

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "ledger": self.ledger.to_state(),
            "officers": [asdict(officer) for officer in self.roster],
            "fields": dict(self.fields),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FormSession":
        session = cls(data["kind"])
        session.ledger = OffenseLedger.from_state(session.ledger.catalog, data.get("ledger") or {})
        officers = [OfficerEntry(**officer) for officer in data.get("officers") or []]
        session.roster = OfficerRoster(officers)
        session.fields.update({k: v for k, v in (data.get("fields") or {}).items() if k in session.fields})
        return session
