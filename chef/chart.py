from chef.models import NutrientVector


LABELS = ("Calories", "Protein", "Fat", "Carbs")


def percentages(normalized: NutrientVector) -> list[float]:
    return [round(v * 100, 2) for v in normalized]


def breakdown(normalized: NutrientVector) -> list[str]:
    """e.g. ["Calories: 83.33%", "Protein: 4.17%", ...]"""
    return [f"{label}: {v * 100:.2f}%" for label, v in zip(LABELS, normalized)]


def title(normalized: NutrientVector) -> str:
    return f"Nutritional Breakdown ({', '.join(breakdown(normalized))})"


def bars(normalized: NutrientVector, width: int = 30) -> list[str]:
    """One text bar per nutrient, scaled to `width` characters at 100%."""
    rows: list[str] = []
    for label, pct in zip(LABELS, percentages(normalized)):
        filled = round(pct / 100 * width)
        rows.append(f"{label:<9}{'█' * filled}{'░' * (width - filled)} {pct:6.2f}%")
    return rows
