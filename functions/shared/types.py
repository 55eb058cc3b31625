# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, List, Optional, Union

# Keys used inside an item change for inserted / removed requirement items.
NEW_ITEM_KEY = "nuevo"
REMOVED_ITEM_KEY = "eliminado"


class RequirementCategory(StrEnum):
    """Requirement arrays stored on a project document."""

    EP = "EP"
    HU = "HU"
    RF = "RF"
    RNF = "RNF"


class UpdateFieldKind(StrEnum):
    """How a key of a project update payload is tracked in the history."""

    HISTORY = "HISTORY"
    REQUIREMENTS = "REQUIREMENTS"
    SCALAR = "SCALAR"


@dataclass
class FieldChange:
    """A single field that went from `old_value` to `new_value`."""

    old_value: Any
    new_value: Any

    def as_dict(self) -> dict:
        return {"oldValue": self.old_value, "newValue": self.new_value}


@dataclass
class ItemChange:
    """
    Change to one requirement item, keyed by the item's id.

    `changes` holds either per-field FieldChange values, or a single
    NEW_ITEM_KEY / REMOVED_ITEM_KEY entry carrying the whole item.
    """

    id: Any
    changes: Dict[str, Union[FieldChange, dict]]

    @classmethod
    def added(cls, item: dict) -> "ItemChange":
        return cls(id=item.get("id"), changes={NEW_ITEM_KEY: item})

    @classmethod
    def removed(cls, item: dict) -> "ItemChange":
        return cls(id=item.get("id"), changes={REMOVED_ITEM_KEY: item})

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "changes": {
                key: value.as_dict() if isinstance(value, FieldChange) else value
                for key, value in self.changes.items()
            },
        }


@dataclass
class Modification:
    """One entry of a project's modificationHistory."""

    timestamp: str
    user_id: Optional[Any]
    user_name: str = ""
    user_lastname: str = ""
    changes: Dict[str, Union[FieldChange, List[ItemChange]]] = field(
        default_factory=dict
    )

    def as_dict(self) -> dict:
        changes: dict = {}
        for key, value in self.changes.items():
            if isinstance(value, FieldChange):
                changes[key] = value.as_dict()
            else:
                changes[key] = [item.as_dict() for item in value]
        return {
            "timestamp": self.timestamp,
            "userId": self.user_id,
            "userName": self.user_name,
            "userLastname": self.user_lastname,
            "changes": changes,
        }


@dataclass
class UserNameLookup:
    """
    Result of resolving the acting user's display name.

    A failed lookup is still a value: `ok` is False, `error` carries the
    reason, and the name fields keep their empty-string fallback.
    """

    ok: bool
    user_name: str = ""
    user_lastname: str = ""
    error: Optional[str] = None
