"""Hoist alternate servers shared by every operation of a path to the path."""

from __future__ import annotations

from .openapi import OpenApi, Operation, Path


def move_same_alternative_servers_to_path(openapi: OpenApi) -> OpenApi:
    """Move identical per-operation server lists up to their path, in place.

    Paths are grouped by path string. A group is merged only when every
    operation declares servers and all lists carry the same URLs in the same
    order; the operations' own lists are then cleared.
    """
    for collection in (openapi.paths, openapi.webhooks):
        for paths_group in _group_by_path(collection).values():
            _merge_group(paths_group)
    return openapi


def _group_by_path(paths: list[Path]) -> dict[str, list[Path]]:
    groups: dict[str, list[Path]] = {}
    for path in paths:
        groups.setdefault(path.path, []).append(path)
    return groups


def _merge_group(paths_group: list[Path]) -> None:
    operations = [operation for path in paths_group for operation in path.operations.values()]
    if not operations:
        return
    if not all(operation.servers for operation in operations):
        return
    if len({_servers_key(operation) for operation in operations}) != 1:
        return

    servers = list(operations[0].servers)
    for path in paths_group:
        path.servers = list(servers)
    for operation in operations:
        operation.servers = []


def _servers_key(operation: Operation) -> tuple[str, ...]:
    return tuple(server.url for server in operation.servers)
