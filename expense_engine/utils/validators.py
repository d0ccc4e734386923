from typing import List

from expense_engine.utils.extraction_rules import ExtractionRules


def check_rules(rules: ExtractionRules) -> List[str]:
    """
    Check a rules bundle for empty or malformed tables.
    Returns a list of error messages.
    """
    errors = []

    for name in (
        "amount_patterns",
        "merchant_patterns",
        "structured_debit_markers",
        "credit_keywords",
        "debit_keywords",
    ):
        table = getattr(rules, name)
        if not table:
            errors.append(f"Rule table '{name}' is empty")
        elif any(not entry for entry in table):
            errors.append(f"Rule table '{name}' contains an empty entry")

    if not rules.institutions:
        errors.append("Rule table 'institutions' is empty")
    for domain, label in rules.institutions:
        if not domain or not label:
            errors.append(f"Institution entry ({domain!r}, {label!r}) is incomplete")

    if not rules.categories:
        errors.append("Rule table 'categories' is empty")
    for category, keywords in rules.categories:
        if not category:
            errors.append("Category with an empty name")
        if not keywords or any(not k for k in keywords):
            errors.append(f"Category '{category}' has empty keywords")

    return errors


def validate_rules(rules: ExtractionRules) -> ExtractionRules:
    """
    Raise ValueError if the rules bundle is unusable, else return it unchanged.
    """
    errors = check_rules(rules)
    if errors:
        raise ValueError("Invalid extraction rules: " + "; ".join(errors))
    return rules
