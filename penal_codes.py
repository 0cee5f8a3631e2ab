from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

CITATION = "citation"
ARREST = "arrest"


@dataclass(frozen=True)
class PenalCodeEntry:
    code: str
    description: str
    fine_amount: str
    jail_time_seconds: Optional[int] = None  # None means no jail time

    @property
    def jail_time(self) -> str:
        if self.jail_time_seconds is None:
            return "None"
        return f"{self.jail_time_seconds} Seconds"

    @property
    def has_fine(self) -> bool:
        return self.fine_amount != "0.00"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "description": self.description,
            "amount": self.fine_amount,
            "jailTime": self.jail_time,
            "category": category_for(self.code),
        }


def _entry(code: str, description: str, fine_amount: str, jail_time_seconds: Optional[int] = None) -> PenalCodeEntry:
    return PenalCodeEntry(code, description, fine_amount, jail_time_seconds)


class PenalCodeCatalog:
    """Immutable lookup table of penal codes, kept in declaration order."""

    def __init__(self, name: str, entries: Sequence[PenalCodeEntry]):
        self.name = name
        table: Dict[str, PenalCodeEntry] = {}
        for entry in entries:
            if entry.code in table:
                raise ValueError(f"Duplicate penal code {entry.code} in {name} catalog")
            table[entry.code] = entry
        self._entries = MappingProxyType(table)
        self._positions = {code: i for i, code in enumerate(table)}
        self._ordered = tuple(table.values())

    def lookup(self, code: Optional[str]) -> Optional[PenalCodeEntry]:
        if not code:
            return None
        return self._entries.get(code.strip())

    def codes(self) -> List[str]:
        return list(self._entries)

    def position(self, code: Optional[str]) -> Optional[int]:
        """Index of ``code`` in declaration order, for compact storage."""
        entry = self.lookup(code)
        return None if entry is None else self._positions[entry.code]

    def at(self, position: Optional[int]) -> Optional[PenalCodeEntry]:
        if not isinstance(position, int) or not 0 <= position < len(self._ordered):
            return None
        return self._ordered[position]

    def __contains__(self, code) -> bool:
        return self.lookup(code) is not None

    def __iter__(self) -> Iterator[PenalCodeEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"<PenalCodeCatalog(name='{self.name}', entries={len(self)})>"


# Fine-only offenses an officer can write a ticket for.
CITATION_CATALOG = PenalCodeCatalog(CITATION, [
    # Section 2 - Property Crimes
    _entry("(2)08", "Petty Theft", "1000.00"),
    _entry("(2)15", "Loitering", "1000.00"),

    # Section 4 - Government/Law Enforcement
    _entry("(4)11", "Misuse of Government Hotline", "1000.00"),
    _entry("(4)12", "Tampering with Evidence", "1000.00"),

    # Section 5 - Public Disturbance
    _entry("(5)01", "Disturbing the Peace", "500.00"),

    # Section 8 - Traffic Violations
    _entry("(8)01", "Invalid / No Vehicle Registration / Insurance", "200.00"),
    _entry("(8)02", "Driving Without a License", "1000.00"),
    _entry("(8)04", "Accident Reporting Requirements - Property Damage", "1000.00"),
    _entry("(8)06", "Failure to Obey Traffic Signal", "250.00"),
    _entry("(8)07", "Driving Opposite Direction", "500.00"),
    _entry("(8)08", "Failure to Maintain Lane", "250.00"),
    _entry("(8)09", "Unsafe Following Distance", "250.00"),
    _entry("(8)10", "Failure to Yield to Civilian", "250.00"),
    _entry("(8)11", "Failure to Yield to Emergency Vehicles", "250.00"),
    _entry("(8)12", "Unsafe Turn", "250.00"),
    _entry("(8)13", "Unsafe Lane Change", "250.00"),
    _entry("(8)14", "Illegal U-Turn", "250.00"),
    _entry("(8)15", "Speeding (6-15 MPH Over)", "250.00"),
    _entry("(8)16", "Speeding (16-25 MPH Over)", "360.00"),
    _entry("(8)17", "Speeding (26+ MPH Over)", "500.00"),
    _entry("(8)19", "Unreasonably Slow / Stopped", "250.00"),
    _entry("(8)20", "Failure to Obey Stop Sign / RED LIGHT", "250.00"),
    _entry("(8)21", "Illegally Parked", "250.00"),
    _entry("(8)24", "Throwing Objects", "1000.00"),
    _entry("(8)31", "Littering", "1000.00"),
    _entry("(8)32", "Unsafe Speed for Conditions", "2000.00"),
    _entry("(8)33", "Hogging Passing Lane", "250.00"),
    _entry("(8)34", "Impeding Traffic", "250.00"),
    _entry("(8)35", "Jaywalking", "250.00"),
    _entry("(8)36", "Unnecessary Use of Horn", "400.00"),
    _entry("(8)37", "Excessive Music / Engine Sounds", "400.00"),
    _entry("(8)39", "Failure to Yield to Pedestrian", "250.00"),
    _entry("(8)40", "Distracted Driving", "1000.00"),
    _entry("(8)41", "Driving on Shoulder / Emergency Lane", "250.00"),
    _entry("(8)42", "Move Over Law", "1000.00"),
    _entry("(8)43", "Driving Without Headlights", "250.00"),
    _entry("(8)44", "Hit and Run", "500.00"),
    _entry("(8)50", "Unroadworthy Vehicle", "1000.00"),
    _entry("(8)51", "Drifting on a Public Road", "250.00"),
    _entry("(8)52", "Failure to Control Vehicle", "250.00"),
    _entry("(8)53", "Unsafe Parking (Parking Ticket)", "100.00"),
    _entry("(8)54", "Failure to Use Turn Signal", "100.00"),
    _entry("(8)55", "Failure to Display License Plate (W/ only)", "300.00"),
])

# Full offense list used by arrest reports. Descriptions drift from the
# citation catalog for some shared codes, e.g. the (8)15 speeding band.
ARREST_CATALOG = PenalCodeCatalog(ARREST, [
    # Section 1 - Criminal/Violence
    _entry("(1)01", "Criminal Threats", "3750.00", 60),
    _entry("(1)02", "Assault", "3750.00", 240),
    _entry("(1)03", "Assault with a Deadly Weapon", "10000.00", 120),
    _entry("(1)04", "Battery", "1000.00", 60),
    _entry("(1)05", "Aggravated Battery", "0.00", 120),
    _entry("(1)06", "Attempted Murder", "10000.00", 240),
    _entry("(1)07", "Manslaughter", "0.00", 270),
    _entry("(1)08", "Murder", "0.00", 600),
    _entry("(1)09", "False Imprisonment", "1000.00", 60),
    _entry("(1)10", "Kidnapping", "0.00", 210),
    _entry("(1)11", "Domestic Violence", "1000.00", 60),
    _entry("(1)12", "Domestic Violence (Physical Traumatic Injury)", "10000.00", 120),
    _entry("(1)13", "Assault on a Public Servant", "1000.00", 120),
    _entry("(1)14", "Attempted Assault on a Public Servant", "1000.00", 100),
    _entry("(1)15", "Assault on a Peace Officer", "2000.00", 180),

    # Section 2 - Property Crimes
    _entry("(2)01", "Arson", "0.00", 210),
    _entry("(2)02", "Trespassing", "1000.00", 15),
    _entry("(2)03", "Trespassing within a Restricted Facility", "10000.00", 60),
    _entry("(2)04", "Burglary", "0.00", 150),
    _entry("(2)05", "Possession of Burglary Tools", "1000.00", 60),
    _entry("(2)06", "Robbery", "0.00", 150),
    _entry("(2)07", "Armed Robbery", "0.00", 390),
    _entry("(2)08", "Petty Theft", "1000.00"),
    _entry("(2)09", "Grand Theft", "0.00", 90),
    _entry("(2)10", "Grand Theft Auto", "0.00", 90),
    _entry("(2)11", "Receiving Stolen Property", "10000.00", 90),
    _entry("(2)12", "Extortion", "10000.00", 120),
    _entry("(2)13", "Forgery / Fraud", "0.00", 90),
    _entry("(2)14", "Vandalism", "0.00", 90),
    _entry("(2)15", "Loitering", "1000.00"),
    _entry("(2)16", "Destruction of Civilian Property", "1000.00", 60),
    _entry("(2)17", "Destruction of Government Property", "10000.00", 120),

    # Section 3 - Public Order
    _entry("(3)01", "Lewd or Dissolute Conduct in Public", "0.00", 90),
    _entry("(3)02", "Stalking", "0.00", 90),
    _entry("(3)03", "Public Urination", "0.00", 120),
    _entry("(3)04", "Public Defecation", "0.00", 120),

    # Section 4 - Government/Law Enforcement
    _entry("(4)01", "Bribery", "10000.00", 120),
    _entry("(4)02", "Dissuading a Victim", "0.00", 60),
    _entry("(4)03", "False Information to a Peace Officer", "0.00", 30),
    _entry("(4)04", "Filing a False Police Report", "0.00", 60),
    _entry("(4)05", "Failure to Identify to a Peace Officer", "1000.00", 60),
    _entry("(4)06", "Impersonation of a Peace Officer", "1000.00", 60),
    _entry("(4)07", "Obstruction of a Peace Officer", "1000.00", 60),
    _entry("(4)08", "Resisting a Peace Officer", "1000.00", 120),
    _entry("(4)09", "Escape from Custody", "1000.00", 210),
    _entry("(4)10", "Prisoner Breakout", "10000.00", 90),
    _entry("(4)11", "Misuse of Government Hotline", "1000.00"),
    _entry("(4)12", "Tampering with Evidence", "1000.00"),
    _entry("(4)13", "Introduction of Contraband", "0.00", 120),
    _entry("(4)14", "False Arrest", "10000.00", 120),
    _entry("(4)15", "Assault on a Peace Officer", "2000.00", 180),
    _entry("(4)16", "Obstruction of Justice", "500.00", 60),
    _entry("(4)17", "Disorderly Conduct", "1000.00", 60),
    _entry("(4)18", "Failure to Comply with a Lawful Order", "500.00", 60),
    _entry("(4)19", "Aiding and Abetting", "0.00", 90),

    # Section 5 - Public Disturbance
    _entry("(5)01", "Disturbing the Peace", "500.00"),
    _entry("(5)02", "Unlawful Assembly", "0.00", 90),
    _entry("(5)03", "Inciting Riot", "1000.00", 120),

    # Section 6 - Drug Related
    _entry("(6)04", "Maintaining a Place for the Purpose of Distribution", "10000.00", 90),
    _entry("(6)05", "Manufacture of a Controlled Substance", "50000.00", 180),
    _entry("(6)06", "Sale of a Controlled Substance", "5000.00", 180),
    _entry("(6)08", "Under the Influence of a Controlled Substance", "2000.00", 180),
    _entry("(6)09", "Detention of Mentally Disordered Persons", "0.00", 180),

    # Section 7 - Animal/Child
    _entry("(7)01", "Animal Abuse / Cruelty", "20000.00", 90),
    _entry("(7)04", "Child Endangerment", "10000.00", 60),

    # Section 8 - Traffic Violations
    _entry("(8)01", "Invalid / No Vehicle Registration / Insurance", "200.00"),
    _entry("(8)02", "Driving Without a License", "1000.00"),
    _entry("(8)03", "Driving With a Suspended or Revoked License", "1000.00", 60),
    _entry("(8)04", "Accident Reporting Requirements - Property Damage", "1000.00"),
    _entry("(8)05", "Accident Reporting Requirements - Injury or Death", "10000.00", 120),
    _entry("(8)06", "Failure to Obey Traffic Signal", "250.00"),
    _entry("(8)07", "Driving Opposite Direction", "500.00"),
    _entry("(8)08", "Failure to Maintain Lane", "250.00"),
    _entry("(8)09", "Unsafe Following Distance", "250.00"),
    _entry("(8)10", "Failure to Yield to Civilian", "250.00"),
    _entry("(8)11", "Failure to Yield to Emergency Vehicles", "250.00"),
    _entry("(8)12", "Unsafe Turn", "250.00"),
    _entry("(8)13", "Unsafe Lane Change", "250.00"),
    _entry("(8)14", "Illegal U-Turn", "250.00"),
    _entry("(8)15", "Speeding (5-15 MPH Over)", "250.00"),
    _entry("(8)16", "Speeding (16-25 MPH Over)", "360.00"),
    _entry("(8)17", "Speeding (26+ MPH Over)", "500.00"),
    _entry("(8)18", "Felony Speeding (100 MPH+)", "5000.00", 30),
    _entry("(8)19", "Unreasonably Slow / Stopped", "250.00"),
    _entry("(8)20", "Failure to Obey Stop Sign / RED LIGHT", "250.00"),
    _entry("(8)21", "Illegally Parked", "250.00"),
    _entry("(8)22", "Reckless Driving", "1000.00", 30),
    _entry("(8)23", "Street Racing", "1000.00", 30),
    _entry("(8)24", "Throwing Objects", "1000.00"),
    _entry("(8)25", "Operating While Intoxicated", "2000.00", 60),
    _entry("(8)26", "Evading a Peace Officer", "0.00", 270),
    _entry("(8)29", "Felony Evading a Peace Officer", "0.00", 300),
    _entry("(8)30", "Road Rage", "0.00", 30),
    _entry("(8)31", "Littering", "1000.00"),
    _entry("(8)32", "Unsafe Speed for Conditions", "2000.00"),
    _entry("(8)33", "Hogging Passing Lane", "250.00"),
    _entry("(8)34", "Impeding Traffic", "250.00"),
    _entry("(8)35", "Jaywalking", "250.00"),
    _entry("(8)36", "Unnecessary Use of Horn", "400.00"),
    _entry("(8)37", "Excessive Music / Engine Sounds", "400.00"),
    _entry("(8)38", "Failure to Sign Citation", "250.00", 30),
    _entry("(8)39", "Failure to Yield to Pedestrian", "250.00"),
    _entry("(8)40", "Distracted Driving", "1000.00"),
    _entry("(8)41", "Driving on Shoulder / Emergency Lane", "250.00"),
    _entry("(8)42", "Move Over Law", "1000.00"),
    _entry("(8)43", "Driving Without Headlights", "250.00"),
    _entry("(8)44", "Hit and Run", "500.00"),
    _entry("(8)45", "Attempted Vehicular Manslaughter", "750.00", 60),
    _entry("(8)46", "Vehicular Manslaughter", "750.00", 120),
    _entry("(8)47", "Reckless Evasion", "750.00", 120),
    _entry("(8)48", "Possession of a Stolen Vehicle", "0.00", 120),
    _entry("(8)49", "Reckless Endangerments", "1000.00", 60),
    _entry("(8)50", "Unroadworthy Vehicle", "1000.00"),
    _entry("(8)51", "Drifting on a Public Road", "250.00"),
    _entry("(8)52", "Failure to Control Vehicle", "250.00"),
    _entry("(8)53", "Unsafe Parking (Parking Ticket)", "100.00"),
    _entry("(8)54", "Failure to Use Turn Signal", "100.00"),
    _entry("(8)55", "Failure to Display License Plate (W/ only)", "300.00"),

    # Section 9 - Weapons
    _entry("(9)01", "Possession of an Illegal Weapon", "1000.00", 60),
    _entry("(9)02", "Brandishing a Firearm", "1000.00", 60),
    _entry("(9)03", "Illegal Discharge of a Firearm", "0.00", 90),
    _entry("(9)04", "Unlicensed Possession of a Firearm", "0.00", 90),
    _entry("(9)05", "Possession of a Stolen Weapon", "0.00", 90),
    _entry("(9)06", "Unlawful Distribution of a Firearm", "0.00", 90),
])

VIOLATION_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Criminal Threats & Assault", ("(1)01", "(1)02", "(1)03")),
    ("Battery & Violence", ("(1)04", "(1)05", "(1)11", "(1)12")),
    ("Murder & Manslaughter", ("(1)06", "(1)07", "(1)08")),
    ("Imprisonment & Kidnapping", ("(1)09", "(1)10")),
    ("Assault on Officers", ("(1)13", "(1)14", "(1)15", "(4)15")),
    ("Property Crimes", ("(2)01", "(2)04", "(2)06", "(2)07", "(2)09", "(2)10")),
    ("Theft & Burglary", ("(2)05", "(2)08", "(2)11", "(2)12", "(2)13")),
    ("Trespassing", ("(2)02", "(2)03")),
    ("Property Damage", ("(2)14", "(2)16", "(2)17")),
    ("Public Order", ("(2)15", "(3)01", "(3)02", "(3)03", "(3)04")),
    ("Government Interference", ("(4)01", "(4)02", "(4)03", "(4)04")),
    ("Officer Obstruction", ("(4)05", "(4)06", "(4)07", "(4)08")),
    ("Custody & Justice", ("(4)09", "(4)10", "(4)13", "(4)14", "(4)16")),
    ("Evidence & Compliance", ("(4)11", "(4)12", "(4)17", "(4)18", "(4)19")),
    ("Public Disturbance", ("(5)01", "(5)02", "(5)03")),
    ("Drug Offenses", ("(6)04", "(6)05", "(6)06", "(6)08", "(6)09")),
    ("Animal & Child Safety", ("(7)01", "(7)04")),
    ("Licensing & Registration", ("(8)01", "(8)02", "(8)03")),
    ("Accident Requirements", ("(8)04", "(8)05")),
    ("Traffic Signals & Signs", ("(8)06", "(8)20")),
    ("Lane & Direction", ("(8)07", "(8)08", "(8)12", "(8)13", "(8)14")),
    ("Yielding & Following", ("(8)09", "(8)10", "(8)11", "(8)39")),
    ("Speeding", ("(8)15", "(8)16", "(8)17", "(8)18", "(8)32")),
    ("Parking & Stopping", ("(8)19", "(8)21", "(8)53")),
    ("Reckless Driving", ("(8)22", "(8)23", "(8)24", "(8)49")),
    ("DUI & Impairment", ("(8)25", "(8)40")),
    ("Evasion & Road Rage", ("(8)26", "(8)29", "(8)30", "(8)47")),
    ("Traffic Equipment", ("(8)36", "(8)37", "(8)43", "(8)54", "(8)55")),
    ("Vehicle Condition", ("(8)50", "(8)52")),
    ("Driving Behavior", ("(8)31", "(8)33", "(8)34", "(8)35", "(8)41", "(8)42", "(8)51")),
    ("Citation & Accidents", ("(8)38", "(8)44")),
    ("Vehicular Crimes", ("(8)45", "(8)46", "(8)48")),
    ("Weapons", ("(9)01", "(9)02", "(9)03", "(9)04", "(9)05", "(9)06")),
)

_CATALOGS = {
    CITATION: CITATION_CATALOG,
    ARREST: ARREST_CATALOG,
}


def catalog_for(kind: str) -> PenalCodeCatalog:
    try:
        return _CATALOGS[kind]
    except KeyError:
        raise ValueError(f"Unknown report kind: {kind}") from None


def category_for(code: str) -> Optional[str]:
    for name, codes in VIOLATION_CATEGORIES:
        if code in codes:
            return name
    return None


def describe_codes(codes: Sequence[str], catalog: PenalCodeCatalog, fallback: str = "Citation") -> str:
    """Join the distinct descriptions of ``codes``, in order of first appearance.

    Codes missing from ``catalog`` are described by ``fallback``.
    """
    descriptions: List[str] = []
    for code in codes:
        entry = catalog.lookup(code)
        description = entry.description if entry else fallback
        if description not in descriptions:
            descriptions.append(description)
    return ", ".join(descriptions)
