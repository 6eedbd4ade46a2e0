"""
Local stub backend.

Terminal entry of the fallback chain. Never raises: it pattern-matches the
prompt to pick a canned document skeleton, falling back to a generic test
document for prompts it does not recognize. Skeletons intentionally keep
bracketed placeholders; the content sanitizer resolves them downstream.
"""

import re
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from legal_doc_auto.prompts.base import format_long_date

from .backends import GenerationBackend

_DOCUMENT_TYPE_MARKER = re.compile(r"^Document type:\s*(\S+)", re.MULTILINE)

_CAPTION = """SUPERIOR COURT OF CALIFORNIA
COUNTY OF {county}

In re the Marriage of:
{party1} (Petitioner)
and
{party2} (Respondent)
"""

TEST_NOTE = "[This is a test document. Please review with an attorney before filing.]"


def _label_value(prompt: str, label: str) -> Optional[str]:
    """Value of the first "Label: value" line (leading "- " allowed)."""
    match = re.search(rf"^[-\s]*{re.escape(label)}:[ \t]*(.+)$", prompt, re.MULTILINE)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def divorce_skeleton(prompt: str, today: date) -> str:
    petitioner = _label_value(prompt, "Petitioner") or "PETITIONER NAME"
    respondent = _label_value(prompt, "Respondent") or "RESPONDENT NAME"
    county = (_label_value(prompt, "County") or "LOS ANGELES").upper()
    marriage_date = _label_value(prompt, "Date of Marriage") or "[DATE OF MARRIAGE]"
    separation_date = _label_value(prompt, "Date of Separation") or "[DATE OF SEPARATION]"

    return _CAPTION.format(county=county, party1=petitioner, party2=respondent) + f"""
PETITION FOR DISSOLUTION OF MARRIAGE
(Family Law - Form FL-100)

1. JURISDICTIONAL STATEMENTS

The Petitioner, {petitioner}, respectfully petitions this Court for a dissolution of marriage and states as follows:

The Petitioner has been a resident of the State of California for more than six (6) months and a resident of {county} County for more than three (3) months immediately preceding the filing of this Petition, thereby establishing jurisdiction pursuant to California Family Code § 2320.

2. MARRIAGE AND SEPARATION

The parties were married on {marriage_date} and separated on {separation_date}. The marriage is irretrievably broken due to irreconcilable differences pursuant to California Family Code § 2310.

3. MINOR CHILDREN

[This section requires review based on whether parties have minor children]

4. COMMUNITY PROPERTY

[This section requires review based on community property status]

5. RELIEF REQUESTED

WHEREFORE, Petitioner prays that this Court:

a) Grant a dissolution of marriage;
b) Determine and divide all community property and community debts equitably;
c) Grant such other and further relief as the Court deems just and proper.

Dated: {format_long_date(today)}

Respectfully submitted,

_________________________
{petitioner}
Petitioner, In Pro Per

{TEST_NOTE}"""


def custody_skeleton(prompt: str, today: date) -> str:
    return """SUPERIOR COURT OF CALIFORNIA
COUNTY OF [COUNTY NAME]

In re the Matter of:
[PARENT 1 NAME] (Petitioner)
and
[PARENT 2 NAME] (Respondent)

CHILD CUSTODY AND VISITATION AGREEMENT
(Family Law - Form FL-311)

1. PARTIES AND CHILDREN

This Agreement is entered into between the parties concerning the custody and visitation of the following minor child(ren):

[Child Name, Date of Birth]

2. LEGAL CUSTODY

The parties agree to [joint/sole] legal custody, meaning that [description of decision-making authority].

3. PHYSICAL CUSTODY

The parties agree to [joint/sole/primary] physical custody with the following schedule:

Regular Schedule:
- [Parent 1]: [Days and times]
- [Parent 2]: [Days and times]

Holidays and Special Occasions:
[Holiday schedule to be specified]

4. EXCHANGE ARRANGEMENTS

Exchanges shall occur at [location] at [time].

5. COMMUNICATION

Each parent shall have reasonable telephone and electronic communication with the child(ren) during the other parent's custody time.

6. RELOCATION

Neither party shall relocate more than [distance] miles without providing written notice to the other party at least [number] days in advance.

""" + TEST_NOTE


def property_skeleton(prompt: str, today: date) -> str:
    sections = (
        "REAL PROPERTY", "VEHICLES", "BANK ACCOUNTS", "RETIREMENT ACCOUNTS",
        "PERSONAL PROPERTY", "COMMUNITY DEBTS", "SPOUSAL WAIVER",
    )
    body = "\n\n".join(
        f"{index}. {heading}\n\n[Details of {heading.lower()}]"
        for index, heading in enumerate(sections, start=1)
    )
    return _CAPTION.format(
        county="[COUNTY NAME]", party1="[PETITIONER NAME]", party2="[RESPONDENT NAME]"
    ) + f"""
PROPERTY SETTLEMENT AGREEMENT

The parties agree to the following division of community property and debts:

{body}

Each party represents that they have fully disclosed all assets and debts, and that this agreement is entered into freely and voluntarily.

{TEST_NOTE}"""


def child_support_skeleton(prompt: str, today: date) -> str:
    amount = _label_value(prompt, "Total Monthly Child Support") or "$[AMOUNT]"
    return _CAPTION.format(
        county="[COUNTY NAME]", party1="[PETITIONER NAME]", party2="[RESPONDENT NAME]"
    ) + f"""
CHILD SUPPORT ORDER
(Family Law - Form FL-150)

1. INCOME INFORMATION

Petitioner's gross monthly income: $[AMOUNT]
Respondent's gross monthly income: $[AMOUNT]

2. CHILD SUPPORT CALCULATION

Based on California guideline calculation pursuant to Family Code § 4055:

Monthly child support: {amount}
To be paid by: [PAYING PARENT]
To: [RECEIVING PARENT]

3. PAYMENT TERMS

Payment shall be made on the [DAY] of each month beginning [DATE].

4. ADDITIONAL EXPENSES

Medical Insurance: [ALLOCATION]
Uninsured Medical Expenses: [ALLOCATION]
Childcare Expenses: [ALLOCATION]

5. DURATION

This order shall remain in effect until the child(ren) reach age 18 or graduate from high school, whichever occurs later, or until further order of the Court.

{TEST_NOTE}"""


def spousal_support_skeleton(prompt: str, today: date) -> str:
    return _CAPTION.format(
        county="[COUNTY NAME]", party1="[PETITIONER NAME]", party2="[RESPONDENT NAME]"
    ) + f"""
SPOUSAL SUPPORT ORDER
(Family Law - Form FL-157)

1. FINDINGS

The Court finds that spousal support is appropriate based on the factors of Family Code § 4320, including the length of the marriage, the earning capacity of each party, and the marital standard of living.

2. SUPPORT ORDER

[PAYING SPOUSE] shall pay to [RECEIVING SPOUSE] spousal support in the amount of $[AMOUNT] per month.

3. PAYMENT TERMS

Payment shall commence on [DATE] and continue until [TERMINATION EVENT/DATE].

4. MODIFICATION AND TERMINATION

This order is modifiable upon a showing of material change in circumstances.

{TEST_NOTE}"""


def generic_document(prompt: str, today: date) -> str:
    return f"""TEST DOCUMENT

This is a test document generated without AI.

Request Details:
{prompt}

Generated on: {format_long_date(today)}

[This is test mode. Configure AI API keys for full functionality.]"""


Skeleton = Callable[[str, date], str]

SKELETONS: Dict[str, Skeleton] = {
    "divorce-petition-ca": divorce_skeleton,
    "custody-agreement-ca": custody_skeleton,
    "property-settlement-ca": property_skeleton,
    "child-support-ca": child_support_skeleton,
    "spousal-support-ca": spousal_support_skeleton,
}

# Checked in order; more specific phrases first
KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("spousal support", "alimony"), "spousal-support-ca"),
    (("child support",), "child-support-ca"),
    (("custody",), "custody-agreement-ca"),
    (("property settlement", "property"), "property-settlement-ca"),
    (("divorce", "dissolution"), "divorce-petition-ca"),
)


def match_document_type(prompt: str) -> Optional[str]:
    """Recognize the document type a prompt asks for."""
    marker = _DOCUMENT_TYPE_MARKER.search(prompt)
    if marker and marker.group(1) in SKELETONS:
        return marker.group(1)

    lowered = prompt.lower()
    for phrases, document_type in KEYWORDS:
        if any(phrase in lowered for phrase in phrases):
            return document_type
    return None


class LocalStubBackend(GenerationBackend):
    """Never-failing local backend producing canned skeletons."""

    name = "test"

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self.today = today or date.today

    def generate(self, system_instruction, user_instruction, temperature=0.0, max_tokens=0):
        document_type = match_document_type(user_instruction)
        skeleton = SKELETONS.get(document_type, generic_document)
        return skeleton(user_instruction, self.today())
