import asyncio
import logging

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from chef import chart
from chef.config import Config, Env
from chef.models import DishRecord, EnrichmentState
from chef.orchestrator import RecommendationOrchestrator, Snapshot


CONSOLE = Console()


def render_dish(dish: DishRecord) -> Panel:
    body = Text()
    body.append("Ingredients:\n", style="bold")
    body.append(f"{dish.raw_ingredients}\n\n")
    body.append("Preparation Method:\n", style="bold")
    for step in dish.preparation_steps:
        body.append(f"  • {step}\n")
    body.append("\nEstimated Calories:\n", style="bold")
    body.append(f"{dish.calories_text}\n")

    normalized = dish.normalized_nutrients
    if normalized is not None:
        body.append(f"\n{chart.title(normalized)}\n", style="bold")
        body.append("\n".join(chart.bars(normalized)) + "\n")
    elif dish.nutrients is not None:
        n = dish.nutrients
        body.append(
            f"\nCalories {n.calorie} · Protein {n.protein_g}g · "
            f"Fat {n.fat_total_g}g · Carbs {n.carbohydrate_g}g\n"
        )
    elif dish.state == EnrichmentState.failed:
        body.append("\nNutrition unavailable.\n", style="dim")

    if dish.image_url:
        body.append(f"\n{dish.image_url}", style="link " + dish.image_url)

    subtitle = None if dish.state.settled else "loading…"
    return Panel(body, title=dish.name, subtitle=subtitle)


def render(snapshot: Snapshot) -> RenderableType:
    if snapshot.error:
        return Text(snapshot.error, style="bold red")
    if not snapshot.dishes and snapshot.fallback_text:
        return Text(snapshot.fallback_text)
    if not snapshot.dishes and snapshot.in_progress:
        return Spinner("dots", text=f"{snapshot.phase.value}…")
    return Group(*(render_dish(d) for d in snapshot.dishes))


async def main() -> None:
    config = Config()
    logging.basicConfig(
        level=logging.DEBUG if config.env == Env.local else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=CONSOLE)],
    )

    async with RecommendationOrchestrator(config) as orchestrator:
        while True:
            ingredients = CONSOLE.input("Ingredients: ")
            if ingredients.lower().strip() in ("q", "quit", "exit"):
                break
            if not ingredients.strip():
                continue
            with Live(console=CONSOLE, refresh_per_second=8) as live:
                def observer(snapshot: Snapshot) -> None:
                    live.update(render(snapshot))

                orchestrator.subscribe(observer)
                try:
                    await orchestrator.submit(ingredients)
                finally:
                    orchestrator.unsubscribe(observer)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
