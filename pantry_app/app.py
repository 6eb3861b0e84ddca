import contextlib
import functools
import json
import logging
from typing import Any, Awaitable, Callable

from databases import Database
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from pantry import services
from pantry.errors import (
    ExtractionUnavailable,
    GenerationFailed,
    MalformedResponse,
    PlacesUnavailable,
    ReceiptExtractionFailed,
    ValidationError,
)
from pantry.llm_service import LLMService
from pantry.normalizer import recipe_from_obj
from pantry.places import PlacesService, places_client_factory
from pantry.repository import (
    FavoritesStore,
    HistoryStore,
    PantryStore,
    SqlFavoritesStore,
    SqlHistoryStore,
    SqlPantryStore,
    create_tables,
)
from pantry.services import RecipeModel
from pantry_app import config


logger = logging.getLogger(__name__)


USER_HEADER = "X-User-Id"


def aJSONResponse(route: Callable[..., Awaitable[Any]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        resp = await route(*args, **kwargs)
        if isinstance(resp, Response):
            return resp
        if not isinstance(resp, tuple):
            content, code = resp, 200
        else:
            content, code = resp
        return JSONResponse(content, status_code=code)

    return wrapper


def user_id(request: Request) -> str:
    uid = request.headers.get(USER_HEADER, "").strip()
    if not uid:
        raise ValidationError(f"Missing {USER_HEADER} header.")
    return uid


async def json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid input.") from e
    if not isinstance(body, dict):
        raise ValidationError("Invalid input.")
    return body  # pyright: ignore[reportUnknownVariableType]


def optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Invalid input.")
    return value


def coordinate(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid coordinates.") from e


@aJSONResponse
async def suggest(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    ingredients = body.get("ingredients")
    if not isinstance(ingredients, (list, str)):
        raise ValidationError("Invalid input.")
    recipes = await services.suggest_recipes(
        [str(i) for i in ingredients] if isinstance(ingredients, list) else ingredients,
        llm=request.app.state.llm,
    )
    return {"recipes": [r.to_dict() for r in recipes]}


@aJSONResponse
async def extract_ingredients(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    recipe = optional_str(body.get("recipe")) or ""
    ingredients = await services.extract_ingredients(recipe, llm=request.app.state.llm)
    return {"ingredients": ingredients}


@aJSONResponse
async def pantry_entries(request: Request) -> Any:
    uid = user_id(request)
    store: PantryStore = request.app.state.pantry
    match request.method.lower():
        case "get":
            entries = await store.list(uid)
            return {"items": [e.to_dict() for e in entries]}
        case "post":
            body = await json_body(request)
            entry = await services.add_to_pantry(
                uid,
                optional_str(body.get("ingredient")) or "",
                optional_str(body.get("quantity")),
                pantry=store,
            )
            return entry.to_dict(), 201
        case _:
            raise ValueError("Unsupported method.")


async def pantry_item(request: Request) -> Response:
    store: PantryStore = request.app.state.pantry
    await store.delete(user_id(request), request.path_params["id"])
    return Response(status_code=204)


@aJSONResponse
async def shopping_list_item(request: Request) -> tuple[dict[str, Any], int]:
    body = await json_body(request)
    entry = await services.add_shopping_item_to_pantry(
        user_id(request),
        optional_str(body.get("ingredient")) or "",
        optional_str(body.get("quantity")),
        pantry=request.app.state.pantry,
    )
    return entry.to_dict(), 201


@aJSONResponse
async def plan(request: Request) -> dict[str, Any]:
    result = await services.plan_for_user(
        user_id(request),
        llm=request.app.state.llm,
        pantry=request.app.state.pantry,
        history=request.app.state.history,
    )
    return result.to_dict()


@aJSONResponse
async def receipt(request: Request) -> dict[str, Any]:
    uid = user_id(request)
    async with request.form() as form:
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise ValidationError("No file uploaded.")
        image = await upload.read()
        mime_type = upload.content_type
    entries = await services.import_receipt_to_pantry(
        uid,
        image,
        mime_type,
        llm=request.app.state.llm,
        pantry=request.app.state.pantry,
    )
    return {"items": [e.to_dict() for e in entries]}


@aJSONResponse
async def favorites(request: Request) -> Any:
    uid = user_id(request)
    store: FavoritesStore = request.app.state.favorites
    match request.method.lower():
        case "get":
            return {"favorites": [f.to_dict() for f in await store.list(uid)]}
        case "post":
            body = await json_body(request)
            recipe = recipe_from_obj(body.get("recipe"), 0)
            if isinstance(recipe, str):
                raise ValidationError(f"Invalid recipe: {recipe}.")
            favorite = await services.save_favorite(uid, recipe, favorites=store)
            return favorite.to_dict(), 201
        case _:
            raise ValueError("Unsupported method.")


async def favorite_item(request: Request) -> Response:
    store: FavoritesStore = request.app.state.favorites
    await store.delete(user_id(request), request.path_params["id"])
    return Response(status_code=204)


@aJSONResponse
async def history(request: Request) -> dict[str, Any]:
    store: HistoryStore = request.app.state.history
    entries = await store.list(user_id(request))
    return {"history": [h.to_dict() for h in entries]}


async def history_item(request: Request) -> Response:
    store: HistoryStore = request.app.state.history
    await store.delete(user_id(request), request.path_params["id"])
    return Response(status_code=204)


@aJSONResponse
async def nearby(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    results = await services.find_nearby_stores(
        coordinate(body.get("lat")),
        coordinate(body.get("lng")),
        optional_str(body.get("query")),
        places=request.app.state.places,
    )
    return {"results": results}


async def validation_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=400)


async def upstream_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s: %s", type(exc).__name__, exc)
    content: dict[str, Any] = {"error": str(exc)}
    if isinstance(exc, (MalformedResponse, ReceiptExtractionFailed)):
        content["raw"] = exc.raw
    return JSONResponse(content, status_code=502)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def create_app(
    cfg: config.Config | None = None,
    *,
    llm: RecipeModel | None = None,
    pantry_store: PantryStore | None = None,
    favorites_store: FavoritesStore | None = None,
    history_store: HistoryStore | None = None,
    places: PlacesService | None = None,
) -> Starlette:
    cfg = config.Config() if cfg is None else cfg

    db: Database | None = None
    if pantry_store is None or favorites_store is None or history_store is None:
        db = Database(cfg.db_url)

    # clients created here are closed on shutdown, injected ones belong to the caller
    owned: list[LLMService | PlacesService] = []

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        configure_logging(cfg.log_level)
        if db is not None:
            await db.connect()
            await create_tables(db)
        yield
        for client in owned:
            await client.close()
        if db is not None:
            await db.disconnect()

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/api/suggest", suggest, methods=["POST"]),
            Route("/api/extract-ingredients", extract_ingredients, methods=["POST"]),
            Route("/api/pantry", pantry_entries, methods=["GET", "POST"]),
            Route("/api/pantry/{id}", pantry_item, methods=["DELETE"]),
            Route("/api/shopping-list", shopping_list_item, methods=["POST"]),
            Route("/api/plan", plan, methods=["POST"]),
            Route("/api/receipt", receipt, methods=["POST"]),
            Route("/api/favorites", favorites, methods=["GET", "POST"]),
            Route("/api/favorites/{id}", favorite_item, methods=["DELETE"]),
            Route("/api/history", history, methods=["GET"]),
            Route("/api/history/{id}", history_item, methods=["DELETE"]),
            Route("/api/nearby", nearby, methods=["POST"]),
        ],
        exception_handlers={
            ValidationError: validation_error,
            GenerationFailed: upstream_error,
            ExtractionUnavailable: upstream_error,
            MalformedResponse: upstream_error,
            ReceiptExtractionFailed: upstream_error,
            PlacesUnavailable: upstream_error,
        },
        lifespan=lifespan,
    )

    if llm is None:
        llm = LLMService.from_config(cfg)
        owned.append(llm)
    app.state.llm = llm
    app.state.pantry = SqlPantryStore(db) if pantry_store is None else pantry_store  # pyright: ignore[reportArgumentType]
    app.state.favorites = (
        SqlFavoritesStore(db) if favorites_store is None else favorites_store  # pyright: ignore[reportArgumentType]
    )
    app.state.history = SqlHistoryStore(db) if history_store is None else history_store  # pyright: ignore[reportArgumentType]
    if places is None:
        places = PlacesService(
            places_client_factory(cfg.foursquare_api_key, timeout=cfg.request_timeout),
            radius=cfg.places_radius,
            limit=cfg.places_limit,
        )
        owned.append(places)
    app.state.places = places
    return app


app = create_app()
