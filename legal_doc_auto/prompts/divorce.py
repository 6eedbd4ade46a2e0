"""Petition for Dissolution of Marriage (FL-100)."""

from typing import Any, List, Mapping, Optional, Sequence

from .base import PromptBuilder, check, detail, flag, value_of


class DivorcePetitionBuilder(PromptBuilder):
    document_type = "divorce-petition-ca"
    document_title = "Petition for Dissolution of Marriage"
    specialty = "dissolution proceedings and FL-100 petitions"
    task = (
        "Draft a complete, court-ready Petition for Dissolution of Marriage "
        "(California Judicial Council Form FL-100) that can be filed "
        "immediately without modification."
    )

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        return (
            "PETITIONER'S INFORMATION",
            "RESPONDENT'S INFORMATION",
            "JURISDICTIONAL BASIS",
            "MARRIAGE AND SEPARATION",
            "MINOR CHILDREN" + ("" if flag(fields, "children") else " (N/A)"),
            "COMMUNITY PROPERTY AND DEBTS" + ("" if flag(fields, "property") else " (N/A)"),
            "RELIEF REQUESTED",
            "DECLARATION UNDER PENALTY OF PERJURY",
            "SIGNATURE BLOCK",
        )

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        address = value_of(fields, "petitioner_address")
        for key, prefix in (("petitioner_city", ", "), ("petitioner_zip", ", CA ")):
            if address and value_of(fields, key):
                address += prefix + value_of(fields, key)

        attorney = value_of(fields, "attorney_name")
        if attorney and value_of(fields, "attorney_bar_number"):
            attorney += f" (Bar No. {value_of(fields, 'attorney_bar_number')})"

        lines: List[Optional[str]] = [
            "Petitioner Details:",
            f"- Petitioner: {value_of(fields, 'petitioner_name')}",
            detail("Address", address),
            detail("Telephone", value_of(fields, "petitioner_phone")),
            detail("Email", value_of(fields, "petitioner_email")),
            detail("Attorney", attorney) or "- Appearing: In Pro Per",
            "",
            "Respondent Details:",
            f"- Respondent: {value_of(fields, 'respondent_name')}",
            detail("Address", value_of(fields, "respondent_address", "(To be served)")),
            detail("Telephone", value_of(fields, "respondent_phone")),
            "",
            "Marriage Information:",
            f"- Date of Marriage: {value_of(fields, 'marriage_date')}",
            detail("Place of Marriage", value_of(fields, "marriage_location")),
            f"- Date of Separation: {value_of(fields, 'separation_date')}",
            "- Grounds: Irreconcilable differences (Cal. Fam. Code § 2310)",
            "",
            "Jurisdiction:",
            f"- County: {value_of(fields, 'county')}",
            f"- CA Residency: {value_of(fields, 'ca_residency_duration', 'More than 6 months')}",
            "- County Residency: "
            + value_of(fields, "county_residency_duration", "More than 3 months"),
            "",
        ]

        if flag(fields, "children"):
            lines += [
                "Minor Children:",
                "- Minor Children Exist: YES",
                detail("Number of Children", value_of(fields, "children_count")),
                detail("Children Details", value_of(fields, "children_details")),
                detail("Custody Request", value_of(fields, "custody_preference")),
            ]
        else:
            lines += ["Minor Children:", "- Minor Children: NONE"]
        lines.append("")

        if flag(fields, "property"):
            lines += [
                "Community Property & Debts:",
                "- Community Property/Debts Exist: YES",
                detail("Details", value_of(fields, "property_details")),
            ]
        else:
            lines += ["Community Property & Debts:", "- Community Property/Debts: NONE"]
        lines.append("")

        lines += [
            "Relief Requested:",
            check("Legal and physical custody orders for minor children",
                  flag(fields, "request_custody")),
            check("Child support per California guideline (Fam. Code § 4055)",
                  flag(fields, "request_support")),
            check("Spousal support pursuant to Fam. Code § 4320",
                  flag(fields, "request_spousal_support")),
            check("Equal division of community property per Fam. Code § 2550",
                  flag(fields, "request_property")),
            check(f"Restore former name to: {value_of(fields, 'former_name')}",
                  flag(fields, "request_name_change") and bool(value_of(fields, "former_name"))),
            check("Attorney fees and costs"),
            check("Such other and further relief as the Court deems just and proper"),
        ]
        return lines

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        county = value_of(fields, "county")
        lines: List[Optional[str]] = [
            "1. Jurisdictional Basis (MANDATORY):",
            "   ✓ State Petitioner has been a California resident for at least 6 months "
            "immediately preceding filing",
            f"   ✓ State Petitioner has been a {county} County resident for at least "
            "3 months immediately preceding filing",
            "   ✓ Cite California Family Code § 2320 for jurisdictional requirements",
            "",
            "2. Grounds for Dissolution (MANDATORY):",
            '   ✓ State "irreconcilable differences" as ground (Cal. Fam. Code § 2310)',
            '   ✓ State marriage is "irretrievably broken"',
            "   ✓ DO NOT include fault-based allegations or inflammatory language",
        ]
        if flag(fields, "children"):
            lines += [
                "",
                "3. UCCJEA Compliance and Custody (MANDATORY):",
                '   ✓ State California is the "home state" for UCCJEA purposes',
                "   ✓ State no other state has jurisdiction over custody",
                "   ✓ Cite the Uniform Child Custody Jurisdiction and Enforcement Act "
                "(Fam. Code § 3400 et seq.)",
                "   ✓ Request the Court exercise jurisdiction over custody and visitation",
            ]
        if flag(fields, "property"):
            lines += [
                "",
                "4. Community Property Division:",
                "   ✓ State community property and/or debts exist requiring division",
                "   ✓ Request equal division pursuant to Fam. Code §§ 2550-2551",
            ]
        return lines

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        return [
            "SUPERIOR COURT OF CALIFORNIA",
            f"COUNTY OF {value_of(fields, 'county').upper()}",
            "",
            "In re the Marriage of                    Case No.: ________________",
            "",
            f"{value_of(fields, 'petitioner_name').upper()},          "
            "PETITION FOR DISSOLUTION OF MARRIAGE (FAMILY LAW)",
            "              Petitioner,",
            "and                                      (Family Code §§ 2320, 2330)",
            f"{value_of(fields, 'respondent_name').upper()},",
            "              Respondent.",
        ]
