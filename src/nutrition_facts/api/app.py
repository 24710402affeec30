"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from nutrition_facts.api.schemas import (
    DishFromIngredientsRequest,
    DishRequest,
    IngredientLookupRequest,
    MealRequest,
    ProviderRequest,
    TextAnalysisRequest,
    WeightUpdate,
)
from nutrition_facts.app_logging import configure_logging
from nutrition_facts.containers import AppContainer
from nutrition_facts.domain.dishes import SavedDish
from nutrition_facts.domain.ledger import DayEntry, Ingredient
from nutrition_facts.domain.profile import UserProfile
from nutrition_facts.services import export
from nutrition_facts.services.dishes import dump_dishes
from nutrition_facts.services.ledger import dump_history
from nutrition_facts.services.providers import (
    PROVIDERS,
    ConfigurationMissingError,
    TransportError,
    dump_config,
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

    @app.exception_handler(ConfigurationMissingError)
    async def configuration_missing(
        request: Request, exc: ConfigurationMissingError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(TransportError)
    async def transport_failed(request: Request, exc: TransportError) -> JSONResponse:
        logger.warning("Provider call failed: %s", exc)
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "status_code": exc.status_code},
        )

    @app.exception_handler(ValueError)
    async def invalid_value(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/history")
    async def get_history(request: Request) -> dict[str, object]:
        """Return the full meal history."""
        state_container: AppContainer = request.app.state.container
        return dump_history(state_container.ledger.history())

    @app.get("/history/{day}")
    async def get_day(day: date, request: Request) -> dict[str, object]:
        """Return one day of the history."""
        state_container: AppContainer = request.app.state.container
        return _day_payload(state_container.ledger.day(day))

    @app.post("/history/{day}/meals", status_code=status.HTTP_201_CREATED)
    async def record_meal(
        day: date, payload: MealRequest, request: Request
    ) -> dict[str, object]:
        """Record a meal on a day."""
        state_container: AppContainer = request.app.state.container
        meal_id = state_container.ledger.record_meal(
            day,
            payload.meal_type,
            [draft.to_ingredient() for draft in payload.ingredients],
        )
        return {
            "mealId": meal_id,
            "day": _day_payload(state_container.ledger.day(day)),
        }

    @app.delete("/history/{day}/meals/{meal_id}")
    async def remove_meal(day: date, meal_id: str, request: Request) -> dict[str, str]:
        """Remove a meal from a day."""
        state_container: AppContainer = request.app.state.container
        if not state_container.ledger.remove_meal(day, meal_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "ok"}

    @app.patch("/history/{day}/meals/{meal_id}/ingredients/{ingredient_id}")
    async def update_weight(
        day: date,
        meal_id: str,
        ingredient_id: str,
        payload: WeightUpdate,
        request: Request,
    ) -> dict[str, object]:
        """Change the grams of a logged ingredient."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.ledger.update_ingredient_weight(
            day, meal_id, ingredient_id, payload.weight
        )
        return _day_payload(entry)

    @app.delete("/history/{day}")
    async def clear_day(day: date, request: Request) -> dict[str, str]:
        """Delete a whole day."""
        state_container: AppContainer = request.app.state.container
        if not state_container.ledger.clear_day(day):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "ok"}

    @app.post("/history/{day}/summary")
    async def summarize_day(day: date, request: Request) -> dict[str, str]:
        """Ask the model for a review of a day."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.ledger.day(day)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        summary = await state_container.analysis_service.summarize_day(
            day, entry, state_container.ledger.goals
        )
        return {"summary": summary}

    @app.get("/dishes")
    async def list_dishes(request: Request, query: str = "") -> dict[str, object]:
        """Search the saved dish library."""
        state_container: AppContainer = request.app.state.container
        return {"dishes": dump_dishes(state_container.dish_service.search(query))}

    @app.post("/dishes", status_code=status.HTTP_201_CREATED)
    async def add_dish(payload: DishRequest, request: Request) -> dict[str, object]:
        """Add a dish with manually entered values."""
        state_container: AppContainer = request.app.state.container
        dish = state_container.dish_service.add(payload.name, payload.per100g)
        return _dish_payload(dish)

    @app.post("/dishes/from-ingredients", status_code=status.HTTP_201_CREATED)
    async def add_dish_from_ingredients(
        payload: DishFromIngredientsRequest, request: Request
    ) -> dict[str, object]:
        """Save a built dish as a per-100g template."""
        state_container: AppContainer = request.app.state.container
        dish = state_container.dish_service.add_from_ingredients(
            [draft.to_ingredient() for draft in payload.ingredients], payload.name
        )
        return _dish_payload(dish)

    @app.put("/dishes/{dish_id}")
    async def update_dish(
        dish_id: str, payload: DishRequest, request: Request
    ) -> dict[str, object]:
        """Replace a saved dish."""
        state_container: AppContainer = request.app.state.container
        try:
            dish = state_container.dish_service.update(
                dish_id, payload.name, payload.per100g
            )
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
        return _dish_payload(dish)

    @app.delete("/dishes/{dish_id}")
    async def delete_dish(dish_id: str, request: Request) -> dict[str, str]:
        """Delete a saved dish."""
        state_container: AppContainer = request.app.state.container
        if not state_container.dish_service.delete(dish_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "ok"}

    @app.get("/profile")
    async def get_profile(request: Request) -> dict[str, object]:
        """Return the user profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.load()
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _profile_payload(profile)

    @app.put("/profile")
    async def save_profile(
        payload: UserProfile, request: Request
    ) -> dict[str, object]:
        """Store the user profile and refresh progress for its goals."""
        state_container: AppContainer = request.app.state.container
        return _profile_payload(state_container.profile_service.save(payload))

    @app.post("/profile/goals")
    async def calculate_goals(request: Request) -> dict[str, object]:
        """Ask the model for daily goals and store them with the profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.load()
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        goals = await state_container.analysis_service.calculate_daily_goals(profile)
        updated = profile.model_copy(update={"daily_goals": goals})
        return _profile_payload(state_container.profile_service.save(updated))

    @app.get("/config/providers")
    async def list_providers() -> dict[str, object]:
        """Return the static provider registry."""
        return {
            "providers": [
                {"id": entry.id, "name": entry.name, "baseUrl": entry.base_url}
                for entry in PROVIDERS
            ]
        }

    @app.get("/config")
    async def get_config(request: Request) -> dict[str, object]:
        """Return the stored provider configuration without tokens."""
        state_container: AppContainer = request.app.state.container
        config = state_container.api_config_service.load()
        if config is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        payload = dump_config(config)
        for settings in payload["providers"].values():
            settings["token"] = "***" if settings["token"] else ""
        return payload

    @app.put("/config/provider")
    async def save_provider(
        payload: ProviderRequest, request: Request
    ) -> dict[str, str]:
        """Store credentials for a provider and make it current."""
        state_container: AppContainer = request.app.state.container
        config = state_container.api_config_service.save_provider(
            payload.provider_id, payload.token, payload.model
        )
        return {"currentProviderId": config.current_provider_id}

    @app.post("/config/models")
    async def refresh_models(
        request: Request, provider_id: str | None = None
    ) -> dict[str, object]:
        """Fetch and store the model list of a provider."""
        state_container: AppContainer = request.app.state.container
        models = await state_container.api_config_service.refresh_models(provider_id)
        return {"models": [model.model_dump() for model in models]}

    @app.post("/analysis/ingredient")
    async def lookup_ingredient(
        payload: IngredientLookupRequest, request: Request
    ) -> dict[str, object]:
        """Look up per-100g nutrients for a product."""
        state_container: AppContainer = request.app.state.container
        profile = await state_container.analysis_service.lookup_ingredient(
            payload.name
        )
        if profile is None:
            raise HTTPException(
                status_code=422,
                detail="Продукт не распознан",
            )
        return {"name": payload.name, "per100g": profile.model_dump()}

    @app.post("/analysis/text")
    async def analyze_text(
        payload: TextAnalysisRequest, request: Request
    ) -> dict[str, object]:
        """Recognize ingredients in a dish description."""
        state_container: AppContainer = request.app.state.container
        ingredients = await state_container.analysis_service.analyze_text(
            payload.text, payload.per_100g
        )
        return _ingredients_payload(ingredients)

    @app.post("/analysis/image")
    async def analyze_image(
        request: Request, hint: str = "", per100g: bool = False
    ) -> dict[str, object]:
        """Recognize ingredients on a food photo sent as the raw request body."""
        state_container: AppContainer = request.app.state.container
        image_bytes = await request.body()
        if not image_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Empty image"
            )
        ingredients = await state_container.analysis_service.analyze_image(
            image_bytes, hint, per100g
        )
        return _ingredients_payload(ingredients)

    @app.get("/export/csv")
    async def export_csv(
        request: Request, start: str | None = None, end: str | None = None
    ) -> Response:
        """Export history rows as CSV."""
        state_container: AppContainer = request.app.state.container
        rows = export.export_rows(state_container.ledger.history(), start, end)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return Response(
            content=export.render_csv(rows).encode("utf-8"),
            media_type="text/csv; charset=utf-8",
            headers=_attachment(export.export_filename("csv", start, end)),
        )

    @app.get("/export/json")
    async def export_json(
        request: Request, start: str | None = None, end: str | None = None
    ) -> Response:
        """Export the filtered history as JSON."""
        state_container: AppContainer = request.app.state.container
        filtered = export.filter_history(state_container.ledger.history(), start, end)
        if not filtered:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return Response(
            content=export.render_json(filtered).encode("utf-8"),
            media_type="application/json; charset=utf-8",
            headers=_attachment(export.export_filename("json", start, end)),
        )

    return app


def _day_payload(entry: DayEntry | None) -> dict[str, object]:
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return entry.model_dump(mode="json", by_alias=True, exclude_none=True)


def _dish_payload(dish: SavedDish) -> dict[str, object]:
    return dish.model_dump(mode="json")


def _profile_payload(profile: UserProfile) -> dict[str, object]:
    return profile.model_dump(mode="json", by_alias=True, exclude_none=True)


def _ingredients_payload(ingredients: list[Ingredient] | None) -> dict[str, object]:
    if ingredients is None:
        raise HTTPException(
            status_code=422,
            detail="Не удалось распознать ингредиенты",
        )
    return {
        "ingredients": [
            ingredient.model_dump(mode="json", by_alias=True)
            for ingredient in ingredients
        ]
    }


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}
