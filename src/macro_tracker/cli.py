"""Interactive command-line client.

Usage:
    macro-tracker [--user-id N]

Commands inside the prompt:
    search <food name>
    add <fdcId> <grams> <meal type>
    report | plan | health | goals [set] | history [days] | profile | export
    exit
"""

import argparse
import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import timedelta

import httpx
from postgrest.exceptions import APIError

from macro_tracker.app_logging import configure_logging
from macro_tracker.containers import AppContainer, build_container
from macro_tracker.domain.meals import MealType
from macro_tracker.domain.models import Gender, UserProfile, UserRecord
from macro_tracker.domain.plans import MealPlanTemplate, MealSlot
from macro_tracker.services.health import health_report
from macro_tracker.services.stats import DEFAULT_HISTORY_DAYS
from macro_tracker.services.targets import (
    derive_targets,
    needs_normalization,
    normalize_percentages,
    target_split,
)

HELP_TEXT = """
Available commands:
- search <food name>: search for a food
- add <fdcId> <grams> <meal type>: log a food you ate
- report: today's nutrition report
- plan: manage meal-plan templates
- health: BMI and estimated body fat
- goals [set]: show or set your nutrition targets
- history [days]: daily totals (default: 7 days)
- profile: edit your personal information
- export: export the last month as CSV
- exit: quit"""

MEAL_TYPE_HINT = "Meal types: breakfast, lunch, dinner, snack"


@dataclass
class CliSession:
    """State of one interactive session: services, current user and I/O."""

    container: AppContainer
    user: UserRecord
    prompt: Callable[[str], str] = input
    echo: Callable[[str], None] = print


Command = Callable[[CliSession, list[str]], Awaitable[None]]


def login(
    container: AppContainer,
    user_id: int | None,
    prompt: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> UserRecord:
    """Return the chosen user, creating an account when it does not exist."""
    if user_id is None:
        raw = prompt("Enter your user ID (or 0 to create a new account): ")
        user_id = _parse_int(raw) or 0
    if user_id > 0:
        user = container.user_service.get_user(user_id)
        if user is not None:
            echo(f"Welcome, {user.name}!")
            return user
        echo("User not found. Creating a new account...")

    name = prompt("Name: ").strip()
    profile = UserProfile(
        name=name,
        age=_parse_int(prompt("Age: ")) or 0,
        weight_kg=_parse_float(prompt("Weight (kg): ")) or 0.0,
        height_cm=_parse_float(prompt("Height (cm): ")) or 0.0,
        gender=_parse_gender(prompt("Gender (male/female): ")),
    )
    user = container.user_service.create_user(profile)
    echo(f"Account created! Your ID is {user.id}")
    return user


async def run_loop(session: CliSession) -> None:
    """Read commands until ``exit`` or end of input."""
    session.echo(HELP_TEXT)
    while True:
        try:
            line = session.prompt("\n> ")
        except EOFError:
            break
        parts = line.split()
        if not parts:
            continue
        name, args = parts[0].lower(), parts[1:]
        if name == "exit":
            session.echo("Goodbye!")
            break
        command = COMMANDS.get(name)
        if command is None:
            session.echo(
                "Unknown command. Available: search, add, report, plan, health, "
                "goals, history, profile, export, exit"
            )
            continue
        try:
            await command(session, args)
        except httpx.HTTPError as exc:
            session.echo(f"Food data provider error: {exc}")
        except (APIError, RuntimeError) as exc:
            session.echo(f"Storage error: {exc}")


async def cmd_search(session: CliSession, args: list[str]) -> None:
    if not args:
        session.echo("Usage: search <food name>")
        return
    foods = await session.container.nutrition_service.search_with_macros(
        " ".join(args)
    )
    if not foods:
        session.echo("No food found.")
        return
    session.echo("\nSearch results:")
    for food in foods:
        session.echo(
            f"- ID: {food.record.fdc_id}, Name: {food.record.description} "
            f"({food.macros.calories:.0f} kcal/100g)"
        )


async def cmd_add(session: CliSession, args: list[str]) -> None:
    if len(args) < 3:
        session.echo("Usage: add <fdcId> <grams> <meal type>")
        session.echo(MEAL_TYPE_HINT)
        return
    fdc_id = _parse_int(args[0])
    if fdc_id is None or fdc_id <= 0:
        session.echo("Invalid food ID")
        return
    grams = _parse_float(args[1])
    if grams is None or grams <= 0:
        session.echo("Invalid quantity")
        return
    try:
        meal_type = MealType.parse(args[2])
    except ValueError:
        session.echo(f"Invalid meal type. {MEAL_TYPE_HINT}")
        return

    result = await session.container.meal_log_service.log_food(
        user_id=session.user.id, fdc_id=fdc_id, grams=grams, meal_type=meal_type
    )
    if result.macros_missing:
        session.echo(
            "Warning: no nutrient values found for this food. "
            "Check the food ID or the provider."
        )
    session.echo(f"Food added to {meal_type}: {result.meal.food_name}")


async def cmd_report(session: CliSession, args: list[str]) -> None:
    report = session.container.targets_service.day_report(session.user.id)
    if report is None:
        session.echo("User not found.")
        return
    totals = report.totals.macros
    session.echo(f"\nNutrition report for {report.totals.day:%d/%m/%Y}:")
    session.echo("\nMeals of the day:")
    for meal in report.meals:
        session.echo(f"- {meal.meal_type}: {meal.food_name} ({meal.grams:.0f}g)")
    session.echo("\nDaily totals:")
    session.echo(f"- Calories: {totals.calories:.0f} kcal")
    session.echo(f"- Protein: {totals.protein_g:.1f}g")
    session.echo(f"- Carbs: {totals.carbs_g:.1f}g")
    session.echo(f"- Fat: {totals.fat_g:.1f}g")
    session.echo(f"- Fiber: {totals.fiber_g:.1f}g")
    if report.targets is None or report.percent_of_target is None:
        return
    session.echo("\nCompared with your targets:")
    labels = (
        ("calories", "Calories", "kcal"),
        ("protein_g", "Protein", "g"),
        ("carbs_g", "Carbs", "g"),
        ("fat_g", "Fat", "g"),
        ("fiber_g", "Fiber", "g"),
    )
    for field, label, unit in labels:
        percent = report.percent_of_target.get(field)
        if percent is None:
            continue
        session.echo(
            f"- {label}: {getattr(totals, field):.1f}/"
            f"{getattr(report.targets, field):.1f}{unit} ({percent:.0f}%)"
        )


async def cmd_plan(session: CliSession, args: list[str]) -> None:
    session.echo("\nMeal-plan templates")
    session.echo("1. Create a template")
    session.echo("2. List templates")
    session.echo("3. Add a food to a template")
    session.echo("4. Move an item to another slot")
    session.echo("5. Delete an item")
    choice = session.prompt("Choose an option (1-5): ").strip()
    service = session.container.meal_plan_service

    if choice == "1":
        name = session.prompt("Template name: ").strip()
        if not name:
            session.echo("A name is required.")
            return
        description = session.prompt("Description: ").strip()
        plan = service.create_plan(session.user.id, name, description)
        session.echo(f"Template '{plan.name}' created!")
    elif choice == "2":
        plans = service.list_plans(session.user.id)
        if not plans:
            session.echo("No template found.")
            return
        session.echo("\nTemplates:")
        for plan in plans:
            _echo_plan(session, plan)
    elif choice == "3":
        await _add_plan_food(session)
    elif choice == "4":
        item_id = _parse_int(session.prompt("Item ID: "))
        slot = _choose_slot(session)
        if item_id is None or slot is None:
            return
        if service.update_item_slot(item_id, slot):
            session.echo(f"Item moved to {slot}.")
        else:
            session.echo("Item not found.")
    elif choice == "5":
        item_id = _parse_int(session.prompt("Item ID: "))
        if item_id is not None and service.delete_item(item_id):
            session.echo("Item deleted.")
        else:
            session.echo("Item not found.")
    else:
        session.echo("Invalid option.")


async def _add_plan_food(session: CliSession) -> None:
    service = session.container.meal_plan_service
    plans = service.list_plans(session.user.id)
    if not plans:
        session.echo("No template found. Create one first.")
        return
    session.echo("\nChoose a template:")
    for plan in plans:
        session.echo(f"{plan.id}. {plan.name}")
    plan_id = _parse_int(session.prompt("Template number: "))
    selected = next((plan for plan in plans if plan.id == plan_id), None)
    if selected is None:
        session.echo("Template not found.")
        return
    slot = _choose_slot(session)
    if slot is None:
        return

    query = session.prompt("\nSearch a food: ").strip()
    foods = await session.container.nutrition_service.search_with_macros(query)
    if not foods:
        session.echo("No food found.")
        return
    session.echo("\nSearch results:")
    for index, food in enumerate(foods, start=1):
        session.echo(f"{index}. {food.record.description}")
    index = _parse_int(session.prompt("\nChoose a food (number): "))
    if index is None or not 1 <= index <= len(foods):
        session.echo("Invalid food number.")
        return
    grams = _parse_float(session.prompt("Quantity (grams): "))
    if grams is None or grams <= 0:
        session.echo("Invalid quantity.")
        return

    item = await service.add_food(
        selected.id, slot, foods[index - 1].record.fdc_id, grams
    )
    if item is None:
        session.echo("Template not found.")
        return
    session.echo(f"\nFood added to template '{selected.name}'!")


async def cmd_health(session: CliSession, args: list[str]) -> None:
    report = health_report(session.user)
    session.echo("\nHealth information:")
    session.echo(f"- Weight: {report.weight_kg:.1f} kg")
    session.echo(f"- Height: {report.height_cm:.1f} cm")
    if report.bmi == 0:
        session.echo("- BMI: unknown (height not set)")
        return
    session.echo(f"- BMI: {report.bmi:.1f}")
    session.echo(f"  Interpretation: {report.category}")
    if report.body_fat_pct is None:
        session.echo("- Estimated body fat: unknown (gender not set)")
    else:
        session.echo(f"- Estimated body fat: {report.body_fat_pct:.1f}%")


async def cmd_goals(session: CliSession, args: list[str]) -> None:
    if args and args[0].lower() == "set":
        _set_goals(session)
        return
    targets = session.container.targets_service.get_targets(session.user.id)
    session.echo("\nYour nutrition targets:")
    if targets is None or not targets.is_set:
        session.echo("No targets set. Use 'goals set' to define them.")
        return
    split = target_split(targets)
    session.echo(f"- Calories: {targets.calories:.0f} kcal")
    session.echo(f"- Protein: {targets.protein_g:.1f}g ({split['protein_g']:.0f}%)")
    session.echo(f"- Carbs: {targets.carbs_g:.1f}g ({split['carbs_g']:.0f}%)")
    session.echo(f"- Fat: {targets.fat_g:.1f}g ({split['fat_g']:.0f}%)")
    session.echo(f"- Fiber: {targets.fiber_g:.1f}g")


def _set_goals(session: CliSession) -> None:
    session.echo("\nSet your nutrition targets:")
    calories = _parse_float(session.prompt("Daily calories: "))
    protein = _parse_float(session.prompt("Protein percentage (e.g. 30): "))
    carbs = _parse_float(session.prompt("Carbs percentage (e.g. 40): "))
    fat = _parse_float(session.prompt("Fat percentage (e.g. 30): "))
    if calories is None or calories <= 0 or None in (protein, carbs, fat):
        session.echo("Invalid value.")
        return
    if min(protein, carbs, fat) < 0:
        session.echo("Percentages cannot be negative.")
        return

    normalize = False
    if needs_normalization(protein, carbs, fat):
        session.echo(
            f"Warning: percentages add up to {protein + carbs + fat:.0f}% "
            "instead of 100%"
        )
        answer = session.prompt("Adjust them automatically? (y/n): ")
        normalize = answer.strip().lower() in {"y", "yes"}
        if normalize and protein + carbs + fat > 0:
            adjusted = normalize_percentages(protein, carbs, fat)
            session.echo(
                "Adjusted percentages: Protein {:.0f}%, Carbs {:.0f}%, "
                "Fat {:.0f}%".format(*adjusted)
            )
        elif normalize:
            session.echo("Cannot adjust percentages that add up to 0.")
            return

    fiber = _parse_float(session.prompt("Fiber target (g): ")) or 0.0
    targets = derive_targets(
        calories, protein, carbs, fat, max(fiber, 0.0), normalize=normalize
    )
    if not session.container.targets_service.set_targets(session.user.id, targets):
        session.echo("Could not save targets.")
        return
    session.user = replace(session.user, targets=targets)
    session.echo("Nutrition targets updated!")


async def cmd_history(session: CliSession, args: list[str]) -> None:
    days = DEFAULT_HISTORY_DAYS
    if args:
        parsed = _parse_int(args[0])
        if parsed is None or parsed < 1:
            session.echo("Usage: history [days]")
            return
        days = parsed
    stats = session.container.stats_service
    today = stats.today()
    entries = stats.history(session.user.id, days, today=today)
    start = today - timedelta(days=days - 1)
    session.echo(f"\nNutrition history from {start:%d/%m/%Y} to {today:%d/%m/%Y}:\n")
    if not entries:
        session.echo("No meals logged in this period.")
        return
    for entry in entries:
        macros = entry.macros
        session.echo(
            f"- {entry.day:%d/%m/%Y}: {macros.calories:.0f} kcal, "
            f"P:{macros.protein_g:.1f}g, C:{macros.carbs_g:.1f}g, "
            f"F:{macros.fat_g:.1f}g, Fiber:{macros.fiber_g:.1f}g"
        )


async def cmd_profile(session: CliSession, args: list[str]) -> None:
    user = session.user
    session.echo("\nEdit your profile (leave blank to keep the current value):")
    name = session.prompt(f"Name [{user.name}]: ").strip()
    age = _parse_int(session.prompt(f"Age [{user.age}]: "))
    weight = _parse_float(session.prompt(f"Weight (kg) [{user.weight_kg:.1f}]: "))
    height = _parse_float(session.prompt(f"Height (cm) [{user.height_cm:.1f}]: "))
    gender = session.prompt(f"Gender (male/female) [{user.gender or ''}]: ").strip()
    if gender and _parse_gender(gender) is None:
        session.echo("Invalid gender. Use male or female.")
        return
    updated = session.container.user_service.update_user(
        user.id,
        name=name,
        age=age,
        weight_kg=weight,
        height_cm=height,
        gender=gender,
    )
    if updated is None:
        session.echo("User not found.")
        return
    session.user = updated
    session.echo("Profile updated!")


async def cmd_export(session: CliSession, args: list[str]) -> None:
    path = session.container.export_service.write_csv(
        session.user.id, session.container.settings.export_dir
    )
    session.echo(f"Data exported to {path}")


COMMANDS: dict[str, Command] = {
    "search": cmd_search,
    "add": cmd_add,
    "report": cmd_report,
    "plan": cmd_plan,
    "health": cmd_health,
    "goals": cmd_goals,
    "history": cmd_history,
    "profile": cmd_profile,
    "export": cmd_export,
}


def _echo_plan(session: CliSession, plan: MealPlanTemplate) -> None:
    session.echo(f"\n{plan.id}. {plan.name}")
    session.echo(f"   Description: {plan.description}")
    if plan.items:
        session.echo("   Items:")
    for item in plan.items:
        session.echo(
            f"   - [{item.id}] {item.slot}: {item.food_name} ({item.grams:.0f}g)"
        )


def _choose_slot(session: CliSession) -> MealSlot | None:
    slots = list(MealSlot)
    session.echo("\nSlots:")
    for index, slot in enumerate(slots, start=1):
        session.echo(f"{index}. {slot}")
    choice = _parse_int(session.prompt(f"Choose a slot (1-{len(slots)}): "))
    if choice is None or not 1 <= choice <= len(slots):
        session.echo("Invalid slot.")
        return None
    return slots[choice - 1]


def _parse_int(raw: str) -> int | None:
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _parse_float(raw: str) -> float | None:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_gender(raw: str) -> Gender | None:
    if not raw.strip():
        return None
    try:
        return Gender.parse(raw)
    except ValueError:
        return None


async def _run(container: AppContainer, user_id: int | None) -> int:
    try:
        user = login(container, user_id)
        await run_loop(CliSession(container=container, user=user))
    finally:
        await container.close_resources()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``macro-tracker`` command."""
    parser = argparse.ArgumentParser(
        prog="macro-tracker", description="Track meals and macro-nutrients."
    )
    parser.add_argument(
        "--user-id", type=int, default=None, help="Skip the login prompt"
    )
    args = parser.parse_args(argv)
    configure_logging(logging.WARNING)
    return asyncio.run(_run(build_container(), args.user_id))


if __name__ == "__main__":
    raise SystemExit(main())
