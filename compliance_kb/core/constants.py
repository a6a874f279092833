from typing import Dict

from compliance_kb.models.chunk import SourceType

SOURCE_TYPE_CATALOG: Dict[SourceType, Dict[str, str]] = {
    SourceType.POLICY: {
        "name": "Policy",
        "description": "Organizational policies and procedures",
    },
    SourceType.PROJECT: {
        "name": "Project",
        "description": "Project documentation (SORA, site surveys, flight plans)",
    },
    SourceType.EQUIPMENT: {
        "name": "Equipment",
        "description": "Aircraft specs, maintenance records, certifications",
    },
    SourceType.CREW: {
        "name": "Crew",
        "description": "Crew qualifications, training records, certifications",
    },
    SourceType.UPLOAD: {
        "name": "Upload",
        "description": "User-uploaded reference documents",
    },
}

# Fixed vocabulary matched against requirement guidance. Order matters:
# only the first few hits are looked up.
COMPLIANCE_TERMS = (
    "conops",
    "sora",
    "sail",
    "oso",
    "risk assessment",
    "emergency",
    "procedures",
    "maintenance",
    "inspection",
    "training",
    "certification",
    "qualification",
    "safety",
    "operations",
    "manual",
    "airspace",
    "bvlos",
    "vlos",
    "pilot",
    "crew",
    "insurance",
    "registration",
    "c2 link",
    "lost link",
    "geo-fence",
)

MISSING_POLICY_GAP = "missing-policy"
