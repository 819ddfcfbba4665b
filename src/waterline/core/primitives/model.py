# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen base for scenario snapshots and results.

    A snapshot handed to the engine cannot change underneath it; variants
    (another exit value, another hurdle) are built with ``model_copy``.
    Unknown fields are rejected so a misspelled key fails at construction.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )
