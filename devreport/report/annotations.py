from devreport.report.schemas import Task


def parse_comma_list(text: str | None) -> list[str]:
    """Split a comma-separated annotation list.

    An item containing ``|`` becomes a bullet list, one bullet per part:
    ``"a|b, c"`` -> ``["• a\\n• b", "c"]``.
    """
    if not text:
        return []

    items: list[str] = []
    for part in text.split(","):
        item = part.strip()
        if "|" in item:
            bullets = [bullet.strip() for bullet in item.split("|") if bullet.strip()]
            item = "\n".join(f"• {bullet}" for bullet in bullets)
        items.append(item)
    return items


def apply_annotations(
    tasks: list[Task],
    *,
    challenges: str | None = None,
    support_required: str | None = None,
    support_from: str | None = None,
    follow_up: str | None = None,
) -> list[Task]:
    """Assign the i-th item of each annotation list to the i-th task."""
    annotations = {
        "challenges": parse_comma_list(challenges),
        "support_required": parse_comma_list(support_required),
        "support_from": parse_comma_list(support_from),
        "follow_up": parse_comma_list(follow_up),
    }

    annotated: list[Task] = []
    for index, task in enumerate(tasks):
        updates = {
            field: values[index]
            for field, values in annotations.items()
            if index < len(values)
        }
        annotated.append(task.model_copy(update=updates) if updates else task)
    return annotated
