# recordgate/routing/config.py
"""
Route configuration loading.

Routes are usually declared in code; YAML files can declare them too, with
import paths for actions, records and hooks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from recordgate.core.loader import import_attr, load_yaml_files, substitute_env_vars
from recordgate.entity.config import EntityFactoryConfig, EntityHooks
from recordgate.entity.factory import EntityFactory
from recordgate.routing.router import ActionRouter

logger = logging.getLogger(__name__)

ENTITY_MODES = ("create", "fetch", "fetch_collection")


@dataclass(frozen=True)
class EntitySpec:
    """YAML-declared entity pipeline step."""

    mode: str
    record: str
    attribute: str
    action: str | None = None
    parameter: str | None = None
    hydrate: bool = False
    allowed_fields: tuple[str, ...] = ()
    hooks: str | None = None


@dataclass(frozen=True)
class RouteSpec:
    """YAML-declared route."""

    name: str
    path: str
    action: str
    methods: tuple[str, ...] = ("GET",)
    entities: tuple[EntitySpec, ...] = ()


@dataclass(frozen=True)
class RoutesConfig:
    routes: list[RouteSpec] = field(default_factory=list)


def _entity_spec(raw: dict[str, Any], route: str) -> EntitySpec:
    mode = raw.get("mode", "fetch")
    if mode not in ENTITY_MODES:
        raise ValueError(
            f"Route '{route}': unknown entity mode '{mode}', expected one of {ENTITY_MODES}"
        )
    return EntitySpec(
        mode=mode,
        record=raw["record"],
        attribute=raw["attribute"],
        action=raw.get("action"),
        parameter=raw.get("parameter"),
        hydrate=bool(raw.get("hydrate", False)),
        allowed_fields=tuple(raw.get("allowed_fields", ())),
        hooks=raw.get("hooks"),
    )


def load_routes_config(patterns: Iterable[str]) -> RoutesConfig:
    """Load route declarations from YAML.

    Expected structure::

        routes:
          - name: book-update
            path: /books/{id}
            methods: [PATCH]
            action: app.actions:BookAction.update
            entity:
              mode: fetch
              record: app.models:Book
              attribute: book
              hydrate: true
              allowed_fields: [title, summary]
              hooks: app.hooks:book_hooks

    ``entity`` may also be a list of steps. Routes are keyed by ``name``
    (default: methods + path); later files override earlier ones.
    """
    yamls = load_yaml_files(patterns)
    routes_map: dict[str, dict[str, Any]] = {}

    for data in yamls:
        for r in substitute_env_vars(data.get("routes", [])):
            methods = tuple(m.upper() for m in r.get("methods", ["GET"]))
            key = r.get("name") or f"{','.join(methods)} {r['path']}"
            routes_map[key] = {**r, "name": key, "methods": methods}

    specs: list[RouteSpec] = []
    for raw in routes_map.values():
        entities = raw.get("entity") or []
        if isinstance(entities, dict):
            entities = [entities]
        specs.append(
            RouteSpec(
                name=raw["name"],
                path=raw["path"],
                action=raw["action"],
                methods=raw["methods"],
                entities=tuple(_entity_spec(e, raw["name"]) for e in entities),
            )
        )

    logger.info("Loaded %d route spec(s): %s", len(specs), [s.name for s in specs])
    return RoutesConfig(routes=specs)


def _resolve_target(path: str) -> Any:
    """``module:Class.method`` → ``(Class, "method")``; ``module:func`` → func."""
    if ":" in path and "." in path.split(":", 1)[1]:
        owner_path, method = path.rsplit(".", 1)
        return import_attr(owner_path), method
    return import_attr(path)


def build_entity_config(spec: EntitySpec) -> EntityFactoryConfig:
    hooks = import_attr(spec.hooks) if spec.hooks else EntityHooks()
    if not isinstance(hooks, EntityHooks):
        raise TypeError(f"'{spec.hooks}' is not an EntityHooks instance")

    kwargs: dict[str, Any] = {}
    if spec.parameter:
        kwargs["request_parameter_name"] = spec.parameter

    return EntityFactoryConfig(
        record_class=import_attr(spec.record),
        parameter_to_inject_into=spec.attribute,
        action_class=import_attr(spec.action) if spec.action else None,
        hydrate_entity_from_request=spec.hydrate,
        allowed_fields=frozenset(spec.allowed_fields),
        hooks=hooks,
        **kwargs,
    )


def register_routes(
    router: ActionRouter,
    cfg: RoutesConfig,
    *,
    entity_factory: EntityFactory,
) -> None:
    """Resolve the imports of every route spec and add it to `router`."""
    for spec in cfg.routes:
        middleware = []
        for entity in spec.entities:
            config = build_entity_config(entity)
            if entity.mode == "create":
                middleware.append(entity_factory.creating(config))
            elif entity.mode == "fetch":
                middleware.append(entity_factory.fetching(config))
            else:
                middleware.append(entity_factory.fetching_collection(config))

        router.add_route(
            spec.path,
            _resolve_target(spec.action),
            methods=spec.methods,
            middleware=middleware,
            name=spec.name,
        )
        logger.info("Route '%s': %s %s -> %s", spec.name, spec.methods, spec.path, spec.action)
