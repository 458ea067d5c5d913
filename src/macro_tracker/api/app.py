"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

import httpx
from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from macro_tracker.api.schemas import (
    MealLogRequest,
    MealPlanCreate,
    MealPlanItemCreate,
    MealSlotUpdate,
    TargetsRequest,
    UserCreate,
    UserUpdate,
)
from macro_tracker.app_logging import configure_logging
from macro_tracker.config import parse_cors_origins
from macro_tracker.containers import AppContainer
from macro_tracker.domain.meals import LoggedMeal
from macro_tracker.domain.models import UserProfile, UserRecord
from macro_tracker.domain.nutrition import FoodDetails
from macro_tracker.domain.plans import MealPlanItem, MealPlanTemplate
from macro_tracker.domain.stats import DailyTotals
from macro_tracker.services.health import health_report
from macro_tracker.services.plans import plan_totals
from macro_tracker.services.stats import DEFAULT_HISTORY_DAYS
from macro_tracker.services.targets import (
    derive_targets,
    needs_normalization,
    target_split,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_allowed_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    def _container(request: Request) -> AppContainer:
        return request.app.state.container

    def _require_user(request: Request, user_id: int) -> UserRecord:
        user = _container(request).user_service.get_user(user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return user

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/users")
    async def list_users(request: Request) -> dict[str, object]:
        users = _container(request).user_service.list_users()
        return {"users": [_user_payload(user) for user in users]}

    @app.post("/users", status_code=status.HTTP_201_CREATED)
    async def create_user(body: UserCreate, request: Request) -> dict[str, object]:
        user = _container(request).user_service.create_user(
            UserProfile(
                name=body.name,
                age=body.age,
                weight_kg=body.weight_kg,
                height_cm=body.height_cm,
                gender=body.gender,
            )
        )
        return _user_payload(user)

    @app.get("/users/{user_id}")
    async def get_user(user_id: int, request: Request) -> dict[str, object]:
        return _user_payload(_require_user(request, user_id))

    @app.put("/users/{user_id}")
    async def update_user(
        user_id: int, body: UserUpdate, request: Request
    ) -> dict[str, object]:
        """Update the filled-in profile fields of a user."""
        user = _container(request).user_service.update_user(
            user_id,
            name=body.name,
            age=body.age,
            weight_kg=body.weight_kg,
            height_cm=body.height_cm,
            gender=str(body.gender) if body.gender else None,
        )
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return _user_payload(user)

    @app.get("/users/{user_id}/targets")
    async def get_targets(user_id: int, request: Request) -> dict[str, object]:
        """Return stored targets and the energy split they represent."""
        targets = _require_user(request, user_id).targets
        if not targets.is_set:
            return {"targets": None, "split": {}}
        return {"targets": targets.to_dict(), "split": target_split(targets)}

    @app.put("/users/{user_id}/targets")
    async def set_targets(
        user_id: int, body: TargetsRequest, request: Request
    ) -> dict[str, object]:
        """Derive gram targets from a calorie goal and store them.

        An energy split off by more than one point is only rescaled when the
        body sets ``normalize``; the response says whether it was off.
        """
        _require_user(request, user_id)
        off_split = needs_normalization(body.protein_pct, body.carbs_pct, body.fat_pct)
        try:
            targets = derive_targets(
                body.calorie_goal,
                body.protein_pct,
                body.carbs_pct,
                body.fat_pct,
                body.fiber_g,
                normalize=body.normalize,
            )
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        _container(request).targets_service.set_targets(user_id, targets)
        return {
            "targets": targets.to_dict(),
            "needs_normalization": off_split,
            "normalized": off_split and body.normalize,
        }

    @app.get("/users/{user_id}/health")
    async def user_health(user_id: int, request: Request) -> dict[str, object]:
        report = health_report(_require_user(request, user_id))
        return {
            "weight_kg": report.weight_kg,
            "height_cm": report.height_cm,
            "bmi": report.bmi,
            "category": str(report.category),
            "body_fat_pct": report.body_fat_pct,
        }

    @app.get("/users/{user_id}/meals")
    async def list_meals(
        user_id: int, request: Request, day: date | None = None
    ) -> dict[str, object]:
        """Return the meals and totals of a day (today by default)."""
        _require_user(request, user_id)
        totals, meals = _container(request).stats_service.get_day(user_id, day)
        return {
            "day": totals.day.isoformat(),
            "totals": totals.macros.to_dict(),
            "meals": [_meal_payload(meal) for meal in meals],
        }

    @app.post("/users/{user_id}/meals", status_code=status.HTTP_201_CREATED)
    async def log_meal(
        user_id: int, body: MealLogRequest, request: Request
    ) -> dict[str, object]:
        """Log a portion of an FDC food."""
        _require_user(request, user_id)
        try:
            result = await _container(request).meal_log_service.log_food(
                user_id=user_id,
                fdc_id=body.fdc_id,
                grams=body.grams,
                meal_type=body.meal_type,
                logged_at=body.logged_at,
            )
        except httpx.HTTPError as exc:
            logger.exception("Food lookup failed for fdc_id=%s", body.fdc_id)
            raise _provider_error(exc) from exc
        return {
            "meal": _meal_payload(result.meal),
            "macros_missing": result.macros_missing,
        }

    @app.get("/users/{user_id}/report")
    async def day_report(
        user_id: int, request: Request, day: date | None = None
    ) -> dict[str, object]:
        """Return a day's totals compared with the user's targets."""
        report = _container(request).targets_service.day_report(user_id, day)
        if report is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return {
            "day": report.totals.day.isoformat(),
            "totals": report.totals.macros.to_dict(),
            "targets": report.targets.to_dict() if report.targets else None,
            "percent_of_target": report.percent_of_target,
            "meals": [_meal_payload(meal) for meal in report.meals],
        }

    @app.get("/users/{user_id}/history")
    async def history(
        user_id: int,
        request: Request,
        days: int = Query(default=DEFAULT_HISTORY_DAYS, ge=1, le=366),
    ) -> dict[str, object]:
        """Return per-day totals for the last ``days`` days, newest first."""
        _require_user(request, user_id)
        entries = _container(request).stats_service.history(user_id, days)
        return {"days": [_daily_payload(entry) for entry in entries]}

    @app.get("/users/{user_id}/export")
    async def export_csv(user_id: int, request: Request) -> Response:
        """Download the last month of meals as CSV."""
        _require_user(request, user_id)
        export_service = _container(request).export_service
        today = export_service.stats_service.today()
        return Response(
            content=export_service.to_csv(user_id, today),
            media_type="text/csv",
            headers={
                "Content-Disposition": (
                    f'attachment; filename="export_{user_id}_{today:%Y%m%d}.csv"'
                )
            },
        )

    @app.get("/users/{user_id}/meal-plans")
    async def list_meal_plans(user_id: int, request: Request) -> dict[str, object]:
        _require_user(request, user_id)
        plans = _container(request).meal_plan_service.list_plans(user_id)
        return {"meal_plans": [_plan_payload(plan) for plan in plans]}

    @app.post("/users/{user_id}/meal-plans", status_code=status.HTTP_201_CREATED)
    async def create_meal_plan(
        user_id: int, body: MealPlanCreate, request: Request
    ) -> dict[str, object]:
        _require_user(request, user_id)
        plan = _container(request).meal_plan_service.create_plan(
            user_id, body.name, body.description
        )
        return _plan_payload(plan)

    @app.post("/meal-plans/{plan_id}/items", status_code=status.HTTP_201_CREATED)
    async def add_meal_plan_item(
        plan_id: int, body: MealPlanItemCreate, request: Request
    ) -> dict[str, object]:
        """Add a portion of an FDC food to a slot of a template."""
        try:
            item = await _container(request).meal_plan_service.add_food(
                plan_id, body.meal_type, body.fdc_id, body.grams
            )
        except httpx.HTTPError as exc:
            logger.exception("Food lookup failed for fdc_id=%s", body.fdc_id)
            raise _provider_error(exc) from exc
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Meal plan not found"
            )
        return _item_payload(item)

    async def _update_item_slot(
        item_id: int, body: MealSlotUpdate, request: Request
    ) -> dict[str, str]:
        updated = _container(request).meal_plan_service.update_item_slot(
            item_id, body.meal_type
        )
        if not updated:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Item not found"
            )
        return {"status": "ok"}

    app.put("/meal-plan-items/{item_id}")(_update_item_slot)
    app.put("/meal-plan-items/{item_id}/meal-type")(_update_item_slot)

    @app.delete("/meal-plan-items/{item_id}")
    async def delete_meal_plan_item(
        item_id: int, request: Request
    ) -> dict[str, str]:
        if not _container(request).meal_plan_service.delete_item(item_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Item not found"
            )
        return {"status": "ok"}

    @app.get("/food/search")
    async def search_food(
        request: Request, query: str = Query(min_length=1)
    ) -> dict[str, object]:
        """Search FDC and return the first foods with usable macros."""
        try:
            foods = await _container(request).nutrition_service.search_with_macros(
                query
            )
        except httpx.HTTPError as exc:
            logger.exception("Food search failed for query=%s", query)
            raise _provider_error(exc) from exc
        return {"foods": [_food_payload(food) for food in foods]}

    @app.get("/food/{fdc_id}")
    async def get_food(fdc_id: int, request: Request) -> dict[str, object]:
        try:
            details = await _container(request).nutrition_service.get_food(fdc_id)
        except httpx.HTTPError as exc:
            logger.exception("Food lookup failed for fdc_id=%s", fdc_id)
            raise _provider_error(exc) from exc
        return _food_payload(details)

    return app


def _provider_error(exc: httpx.HTTPError) -> HTTPException:
    """Map a food data provider failure to 404 or 502."""
    if (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code == status.HTTP_404_NOT_FOUND
    ):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Food not found"
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Food data provider unavailable",
    )


def _user_payload(user: UserRecord) -> dict[str, object]:
    return {
        "id": user.id,
        "name": user.name,
        "age": user.age,
        "weight_kg": user.weight_kg,
        "height_cm": user.height_cm,
        "gender": str(user.gender) if user.gender else None,
        "targets": user.targets.to_dict() if user.targets.is_set else None,
    }


def _meal_payload(meal: LoggedMeal) -> dict[str, object]:
    return {
        "id": meal.id,
        "user_id": meal.user_id,
        "meal_type": str(meal.meal_type),
        "logged_at": meal.logged_at.isoformat(),
        "food_id": meal.food_id,
        "food_name": meal.food_name,
        "grams": meal.grams,
        "macros": meal.macros.to_dict(),
    }


def _daily_payload(entry: DailyTotals) -> dict[str, object]:
    return {"day": entry.day.isoformat(), "totals": entry.macros.to_dict()}


def _item_payload(item: MealPlanItem) -> dict[str, object]:
    return {
        "id": item.id,
        "meal_plan_id": item.meal_plan_id,
        "meal_type": str(item.slot),
        "food_id": item.food_id,
        "food_name": item.food_name,
        "grams": item.grams,
        "macros": item.macros.to_dict(),
    }


def _plan_payload(plan: MealPlanTemplate) -> dict[str, object]:
    return {
        "id": plan.id,
        "user_id": plan.user_id,
        "name": plan.name,
        "description": plan.description,
        "items": [_item_payload(item) for item in plan.items],
        "totals": plan_totals(plan).to_dict(),
    }


def _food_payload(details: FoodDetails) -> dict[str, object]:
    return {
        "fdc_id": details.record.fdc_id,
        "description": details.record.description,
        "data_type": details.record.data_type,
        "macros": details.macros.to_dict(),
    }
