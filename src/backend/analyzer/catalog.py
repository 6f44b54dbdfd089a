"""
Static questionnaire data: question catalogues, visibility rules, remediation
text and keyword lists.
"""

from typing import NamedTuple

from models import Answer


class Question(NamedTuple):
    id: str
    control: str
    text: str
    critical: bool = False


class Remediation(NamedTuple):
    impact: str
    action: str


# ══════════════════════════════════════════
#  Checklist variant (five technical controls)
# ══════════════════════════════════════════
SCORED_CONTROLS = ["firewalls", "secureConfig", "updates", "accessControl", "malware"]

CONTROL_LABELS = {
    "firewalls": "Firewalls",
    "secureConfig": "Secure Configuration",
    "updates": "Security Update Management",
    "accessControl": "User Access Control",
    "malware": "Malware Protection",
    "scope": "Scope & Context",
    "vendors": "Third-Party Vendors",
}

CHECKLIST_QUESTIONS = [
    Question("q1_1", "firewalls", "Firewalls are enabled on every device and internet gateway", True),
    Question("q1_2", "firewalls", "Default passwords on routers and firewalls have been changed", True),
    Question("q1_3", "firewalls", "Inbound connections are blocked by default", True),
    Question("q1_4", "firewalls", "Firewall rules are reviewed and unused rules removed"),
    Question("q2_1", "secureConfig", "Guest and unused accounts are removed or disabled", True),
    Question("q2_2", "secureConfig", "Unnecessary software is removed from devices"),
    Question("q2_3", "secureConfig", "Auto-run is disabled on all devices", True),
    Question("q2_4", "secureConfig", "Users must authenticate before accessing organisational data", True),
    Question("q2_5", "secureConfig", "Devices lock with a password or PIN of 6+ characters", True),
    Question("q3_1", "updates", "All software is licensed and supported by the vendor", True),
    Question("q3_2", "updates", "Automatic updates are enabled where available", True),
    Question("q3_3", "updates", "Critical and high-risk updates are applied within 14 days", True),
    Question("q3_4", "updates", "Unsupported software is removed from devices"),
    Question("q4_1", "accessControl", "Every user has an individual account", True),
    Question("q4_2", "accessControl", "Accounts are disabled promptly when staff leave", True),
    Question("q4_3", "accessControl", "Multi-factor authentication is enabled on all cloud services", True),
    Question("q4_4", "accessControl", "Administrators use separate accounts for admin tasks", True),
    Question("q4_5", "accessControl", "Passwords meet a required password policy", True),
    Question("q4_6", "accessControl", "Admin accounts are also protected by multi-factor authentication"),
    Question("q5_1", "malware", "Anti-malware or application allow listing is in place on all devices", True),
    Question("q5_2", "malware", "Anti-malware software is enabled and running", True),
    Question("q5_3", "malware", "Anti-malware definitions update automatically", True),
    Question("q5_4", "malware", "Anti-malware scans web pages and files on access"),
    Question("q6_1", "scope", "Staff use personally owned devices to access organisational data"),
    Question("q6_2", "scope", "All cloud services are included in scope", True),
    Question("q6_3", "scope", "Personally owned devices are included in the assessment scope"),
    Question("q6_backup", "scope", "Automated backups run with a documented recovery procedure"),
    Question("q6_incident", "scope", "A documented incident response plan is tested"),
]

QUESTIONS_BY_ID = {q.id: q for q in CHECKLIST_QUESTIONS}

# questionId -> (parent questionId, parent values that make it visible)
CHECKLIST_VISIBILITY = {
    "q1_4": ("q1_1", ("pass", "partial")),
    "q4_6": ("q4_4", ("pass", "partial")),
    "q5_4": ("q5_1", ("pass", "partial")),
    "q6_3": ("q6_1", ("pass",)),
}

REMEDIATION = {
    "q1_1": Remediation(
        "Without firewalls, devices are exposed to network-based attacks",
        "Enable built-in firewalls (Windows Defender Firewall, macOS Firewall) on all devices immediately",
    ),
    "q1_2": Remediation(
        "Default passwords are publicly known and easily exploited by attackers",
        "Change all default passwords on routers and firewalls to strong, unique passwords (12+ characters)",
    ),
    "q1_3": Remediation(
        "Open firewalls allow attackers easy access to your network",
        "Configure firewalls to block all incoming connections by default (deny-all policy)",
    ),
    "q2_1": Remediation(
        "Unused accounts are a security risk and potential entry point for attackers",
        "Remove or disable all guest accounts and any unused user accounts",
    ),
    "q2_3": Remediation(
        "Auto-run can execute malicious files without user permission",
        "Disable auto-run/auto-execute features in Windows and other operating systems",
    ),
    "q2_4": Remediation(
        "Unauthenticated access allows anyone to access sensitive business data",
        "Implement authentication requirements before accessing any organizational data or services",
    ),
    "q2_5": Remediation(
        "Unlocked devices can be accessed by anyone with physical access",
        "Enable screen lock on all devices with a 6+ character password or PIN",
    ),
    "q3_1": Remediation(
        "Unsupported software receives no security updates and is highly vulnerable",
        "Replace all unsupported software immediately - this is a critical requirement",
    ),
    "q3_2": Remediation(
        "Without automatic updates, critical security patches may be missed",
        "Enable automatic updates on all devices and software",
    ),
    "q3_3": Remediation(
        "Delayed patching leaves systems vulnerable to known exploits",
        "Establish a process to apply critical/high-risk updates within 14 days of release",
    ),
    "q4_1": Remediation(
        "Shared accounts make it impossible to track who did what and prevent accountability",
        "Create individual accounts for each user - no shared logins allowed",
    ),
    "q4_2": Remediation(
        "Former employees with active accounts can access sensitive data they should not have",
        "Implement a process to disable/remove accounts immediately when employees leave",
    ),
    "q4_3": Remediation(
        "Without MFA, a single stolen password gives attackers full access to cloud services",
        "Enable Multi-Factor Authentication (MFA) on ALL cloud services - this is MANDATORY",
    ),
    "q4_4": Remediation(
        "Using admin accounts for daily tasks exposes high privileges to malware and phishing",
        "Create separate admin accounts used ONLY for administrative tasks",
    ),
    "q4_5": Remediation(
        "Weak passwords can be easily guessed or cracked by attackers",
        "Implement one of the required password policies: MFA + 8 chars, OR 12+ chars, OR 8+ chars with blocklist",
    ),
    "q5_1": Remediation(
        "Without malware protection, your systems are vulnerable to viruses, ransomware, and other threats",
        "Install and activate anti-malware software on all devices OR implement application allow listing",
    ),
    "q5_2": Remediation(
        "Disabled antivirus provides no protection against malware",
        "Ensure anti-malware software is enabled and running on all devices",
    ),
    "q5_3": Remediation(
        "Outdated malware definitions cannot detect new threats",
        "Enable automatic updates for anti-malware definitions",
    ),
    "q6_2": Remediation(
        "Excluding cloud services leaves a major security gap and violates Cyber Essentials requirements",
        "Include ALL cloud services in scope - cloud services cannot be excluded",
    ),
    "q6_backup": Remediation(
        "Without backups, ransomware attacks or hardware failures could result in permanent data loss",
        "Implement automated backup procedures with at least daily backups of critical data",
    ),
    "q6_incident": Remediation(
        "Without a plan, security incidents will be handled inconsistently, leading to longer recovery "
        "times and greater damage",
        "Create and document an incident response plan covering detection, containment, and recovery procedures",
    ),
}

DEFAULT_REMEDIATION = Remediation(
    "This is a mandatory requirement for Cyber Essentials certification",
    "Implement this control immediately to meet certification requirements",
)

NON_CRITICAL_RECOMMENDATION = (
    "While not critical, addressing this will strengthen your security posture "
    "and improve certification readiness"
)

STRENGTH_QUESTIONS = {"q1_1", "q3_2", "q4_3"}

# Scored outside the five controls: (warning on fail, recommendation, strength on pass)
SUPPLEMENTARY_QUESTIONS = {
    "q6_backup": (
        "No regular backup procedure in place",
        "While not required for Cyber Essentials, implementing automated backups is CRITICAL for "
        "ransomware recovery and business continuity. Consider cloud backup solutions like Azure "
        "Backup, AWS Backup, or Veeam.",
        "Automated backup procedures in place with documented recovery",
    ),
    "q6_incident": (
        "No documented incident response plan",
        "Create a simple incident response plan covering: 1) Who to contact, 2) How to isolate "
        "affected systems, 3) When to notify authorities, 4) Communication procedures. The NCSC "
        "provides free templates.",
        "Documented and tested incident response plan",
    ),
}

END_OF_LIFE_KEYWORDS = ["windows 7", "office 2010", "xp", "2003"]

OUTDATED_SOFTWARE_REMEDIATION = Remediation(
    "Legacy software no longer receives security updates and must be removed or upgraded",
    "Upgrade to supported versions or remove this software completely from all systems",
)

# text_inputs key -> label shown to the user
REQUIRED_TEXT_FIELDS = {
    "firewallDetails": "Firewall solution(s)",
    "outdatedSoftware": "Outdated software list",
    "malwareDetails": "Anti-malware software details",
    "deviceCount": "Number of devices in scope",
    "cloudServices": "Cloud services list",
    "backupDetails": "Backup solution description",
    "incidentDetails": "Incident response procedures",
}

TEXT_INPUT_LABELS = {
    "firewallDetails": "Firewall solution(s)",
    "malwareDetails": "Anti-malware solution(s)",
    "outdatedSoftware": "Outdated software reported",
    "cloudServices": "Cloud services in use",
    "deviceCount": "Devices in scope",
    "backupDetails": "Backup procedures",
    "incidentDetails": "Incident response",
}


# ══════════════════════════════════════════
#  Framework variant (fourteen sections)
# ══════════════════════════════════════════
SECTION_IDS = ["A1", "A2", "A3", "A4", "B1", "B2", "B3", "B4", "B5", "B6", "C1", "C2", "D1", "D2"]

SECTION_QUESTION_COUNTS = {
    "A1": 6, "A2": 4, "A3": 3, "A4": 4, "B1": 4, "B2": 8, "B3": 10,
    "B4": 8, "B5": 6, "B6": 4, "C1": 12, "C2": 4, "D1": 6, "D2": 4,
}

TOTAL_FRAMEWORK_QUESTIONS = sum(SECTION_QUESTION_COUNTS.values())

SECTION_TITLES = {
    "A1": "Governance",
    "A2": "Risk Management",
    "A3": "Asset Management",
    "A4": "Supply Chain",
    "B1": "Service Protection Policies, Processes and Procedures",
    "B2": "Identity and Access Control",
    "B3": "Data Security",
    "B4": "System Security",
    "B5": "Resilient Networks and Systems",
    "B6": "Staff Awareness and Training",
    "C1": "Security Monitoring",
    "C2": "Proactive Security Event Discovery",
    "D1": "Response and Recovery Planning",
    "D2": "Lessons Learned",
}

OBJECTIVES = {
    "A": ["A1", "A2", "A3", "A4"],
    "B": ["B1", "B2", "B3", "B4", "B5", "B6"],
    "C": ["C1", "C2"],
    "D": ["D1", "D2"],
}

OBJECTIVE_TITLES = {
    "A": "Managing security risk",
    "B": "Protecting against cyber attack",
    "C": "Detecting cyber security events",
    "D": "Minimising the impact of cyber security incidents",
}

FRAMEWORK_POINTS = {"achieved": 100, "partial": 50, "not-achieved": 0, "na": None}

MIN_FRAMEWORK_ANSWERS = 10

REGULATORY_NOTE = "Review NIS Regulations compliance obligations relevant to your sector."


# ══════════════════════════════════════════
#  Vendor questionnaire
# ══════════════════════════════════════════
class VendorQuestion(NamedTuple):
    id: str
    text: str
    weight: int


VENDOR_QUESTIONS = [
    VendorQuestion("v_certification", "Vendor holds a current Cyber Essentials or ISO 27001 certificate", 3),
    VendorQuestion("v_contract", "Contract includes security and data protection obligations", 3),
    VendorQuestion("v_mfa", "Vendor enforces MFA on accounts that reach your systems", 2),
    VendorQuestion("v_encryption", "Your data is encrypted in transit and at rest by the vendor", 2),
    VendorQuestion("v_breach_notice", "Vendor must notify you of breaches within an agreed window", 2),
    VendorQuestion("v_access_review", "Vendor access is reviewed at least annually", 1),
    VendorQuestion("v_offboarding", "Vendor access is revoked when the engagement ends", 1),
    VendorQuestion("v_subprocessors", "Vendor discloses its subprocessors", 1),
]

VENDOR_WEIGHTS = {q.id: q.weight for q in VENDOR_QUESTIONS}

ACCESS_MULTIPLIERS = {
    "system": 1.5,
    "network": 1.3,
    "data": 1.2,
    "physical": 1.1,
    "cloud": 1.1,
    "limited": 0.7,
}

VENDOR_ANSWER_FACTORS = {"pass": 1.0, "partial": 0.5, "fail": 0.0, "unsure": 0.0}


def checklist_answer(question_id: str, value: str):
    """Build an Answer for a catalogued checklist question (label and critical flag filled in)."""
    q = QUESTIONS_BY_ID[question_id]
    return Answer(value=value, text=q.text, critical=q.critical)


def is_critical(question_id: str, answer) -> bool:
    """The catalogue decides criticality; the answer's own flag only counts for uncatalogued ids."""
    q = QUESTIONS_BY_ID.get(question_id)
    return q.critical if q is not None else answer.critical
