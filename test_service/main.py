"""
Test Service for flagcat Python SDK

This HTTP server wraps the FlagCatClient and exposes a standard interface
for the test harness to interact with.

Protocol:
- GET /  -> Health check
- POST / -> Execute command
- DELETE / -> Cleanup/shutdown
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from flagcat import (
    FlagCatClient,
    FlagCatOptions,
    InMemoryConfigCache,
    PollingMode,
    User,
    auto_poll,
    lazy_load,
    manual_poll,
)

client: Optional[FlagCatClient] = None
cache: Optional[InMemoryConfigCache] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Cleanup on shutdown
    global client
    if client:
        await client.close()
        client = None

app = FastAPI(lifespan=lifespan)


_MISSING = object()


def make_response(
    value: Any = _MISSING,
    variation_id: Optional[str] = None,
    key: Optional[str] = None,
    keys: Optional[list] = None,
    variation_ids: Optional[list] = None,
    values: Optional[dict] = None,
    is_ready: Optional[bool] = None,
    cache_stats: Optional[dict] = None,
    success: Optional[bool] = None,
    error: Optional[str] = None,
    message: Optional[str] = None,
) -> dict:
    resp = {}
    if value is not _MISSING:
        resp["value"] = value
    if variation_id is not None:
        resp["variationId"] = variation_id
    if key is not None:
        resp["key"] = key
    if keys is not None:
        resp["keys"] = keys
    if variation_ids is not None:
        resp["variationIds"] = variation_ids
    if values is not None:
        resp["values"] = values
    if is_ready is not None:
        resp["isReady"] = is_ready
    if cache_stats is not None:
        resp["cacheStats"] = cache_stats
    if success is not None:
        resp["success"] = success
    if error is not None:
        resp["error"] = error
    if message is not None:
        resp["message"] = message
    return resp


def parse_polling_mode(data: Optional[dict]) -> PollingMode:
    data = data or {}
    mode_type = data.get("type", "manual")
    if mode_type == "auto":
        return auto_poll(
            poll_interval_seconds=data.get("pollIntervalSeconds", 60),
            max_init_wait_seconds=data.get("maxInitWaitSeconds", 5),
        )
    if mode_type == "lazy":
        return lazy_load(
            cache_refresh_interval_seconds=data.get("cacheRefreshIntervalSeconds", 60),
            use_async_refresh=data.get("useAsyncRefresh", False),
        )
    if mode_type == "manual":
        return manual_poll()
    raise ValueError(f"Unknown polling mode: {mode_type}")


def parse_user(data: Optional[dict]) -> Optional[User]:
    if not data:
        return None
    return User(
        identifier=data.get("identifier", ""),
        email=data.get("email"),
        country=data.get("country"),
        custom=data.get("custom"),
    )


async def handle_command(cmd: dict) -> dict:
    global client, cache
    command = cmd.get("command")

    if command == "init":
        config_data = cmd.get("config")
        if not config_data:
            return make_response(error="ValidationError", message="config is required")

        # Cleanup previous instance
        if client:
            await client.close()
            client = None

        try:
            cache = InMemoryConfigCache()
            options = FlagCatOptions(
                polling_mode=parse_polling_mode(config_data.get("pollingMode")),
                cache=cache,
                base_url=config_data.get("baseUrl"),
                timeout_ms=config_data.get("timeout", 30000),
            )
            client = FlagCatClient(config_data.get("sdkKey", ""), options)
            return make_response(success=True)
        except Exception as e:
            return make_response(error=type(e).__name__, message=str(e))

    if command == "close":
        if client:
            await client.close()
            client = None
        return make_response(success=True)

    if command == "getState":
        if not client or cache is None:
            return make_response(is_ready=False)

        stats = cache.get_stats()
        return make_response(
            is_ready=True,
            cache_stats={
                "hits": stats.hits,
                "misses": stats.misses,
                "writes": stats.writes,
                "hitRate": cache.get_hit_rate(),
            },
        )

    if not client:
        return make_response(error="NotInitializedError", message="Client not initialized")

    user = parse_user(cmd.get("user"))

    if command in ("getValue", "getVariationId"):
        flag_key = cmd.get("flagKey")
        if not flag_key:
            return make_response(error="ValidationError", message="flagKey is required")

        if command == "getValue":
            value = await client.get_value(flag_key, cmd.get("defaultValue"), user)
            return make_response(value=value)

        variation_id = await client.get_variation_id(flag_key, cmd.get("defaultVariationId"), user)
        return make_response(variation_id=variation_id)

    elif command == "getAllKeys":
        return make_response(keys=await client.get_all_keys())

    elif command == "getAllVariationIds":
        return make_response(variation_ids=await client.get_all_variation_ids(user))

    elif command == "getAllValues":
        return make_response(values=await client.get_all_values(user))

    elif command == "getKeyAndValue":
        variation_id = cmd.get("variationId")
        if not variation_id:
            return make_response(error="ValidationError", message="variationId is required")

        result = await client.get_key_and_value(variation_id)
        if result is None:
            return make_response(error="ParseFailureError", message=f"Unknown variation id: {variation_id}")
        return make_response(key=result.key, value=result.value)

    elif command == "forceRefresh":
        result = await client.force_refresh()
        if not result.success:
            return make_response(success=False, error="RefreshFailed", message=result.error)
        return make_response(success=True)

    else:
        return make_response(error="UnknownCommand", message=f"Unknown command: {command}")


@app.get("/")
async def health_check():
    return {"success": True}


@app.post("/")
async def execute_command(request: Request):
    try:
        cmd = await request.json()
        result = await handle_command(cmd)
        return JSONResponse(content=result)
    except Exception as e:
        return JSONResponse(
            content=make_response(error="ParseError", message=str(e)),
            status_code=400,
        )


@app.delete("/")
async def cleanup():
    global client
    if client:
        await client.close()
        client = None
    return {"success": True}


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8007"))
    print(f"[sdk-python test-service] Listening on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")
