"""Registry contract - the call surface of the property registry

Callers reach the registry through named methods:

    contract.invoke("register", ["3 bed house, Elm St"], "admin")
    contract.invoke("transfer", [1, "alice"], "admin")
    contract.invoke("owner", [1], "anyone")

Every call returns a dict. Successful calls carry "success": True plus
their payload; failures carry the standardized error response from
errors.py. Nothing raised by the ledger or attribute store escapes.

Method descriptions are configurable via contract.method_descriptions
in config.yaml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..config import get_validated_config
from ..config_schema import ContractConfig
from .attributes import AttributeStore
from .errors import ErrorCode, RegistryError, error_response, validation_error
from .events import EventLogger
from .ledger import PropertyLedger
from .types import MethodInfo, QueryResult, RegisterResult, TransferResult

logger = logging.getLogger(__name__)

Handler = Callable[[list[Any], str], dict[str, Any]]


class _BadCall(Exception):
    """Malformed call; carries the validation error response."""

    def __init__(self, response: dict[str, object]) -> None:
        self.response = response
        super().__init__(str(response.get("error", "")))


@dataclass
class RegistryMethod:
    """A method exposed by the registry contract"""
    name: str
    handler: Handler
    mutating: bool
    description: str
    params: list[str] = field(default_factory=list)
    optional: list[str] = field(default_factory=list)


# Parameters that must be plain integers before the call reaches the ledger
_INT_PARAMS = {"property_id", "low", "high", "sequence", "timestamp"}

# Parameters that must be strings
_STR_PARAMS = {"candidate", "owner"}

# (name, params, description)
_READ_METHODS: list[tuple[str, list[str], str]] = [
    ("owner", ["property_id"], "Current owner of a property"),
    ("description", ["property_id"], "Primary description of a property"),
    ("is_locked", ["property_id"], "Whether further transfers are blocked"),
    ("exists", ["property_id"], "Whether the property is registered"),
    ("can_transfer", ["property_id"], "Whether a transfer could still succeed"),
    ("category", ["property_id"], "Category of a property"),
    ("location", ["property_id"], "Location of a property"),
    ("value", ["property_id"], "Recorded valuation"),
    ("tax", ["property_id"], "Recorded tax amount"),
    ("insurance", ["property_id"], "Insurance flag and provider"),
    ("occupancy", ["property_id"], "Whether the property is occupied"),
    ("zoning", ["property_id"], "Zoning designation"),
    ("age", ["property_id"], "Construction year"),
    ("is_listed", ["property_id"], "Whether the property is listed"),
    ("maintenance_log", ["property_id"], "All maintenance entries ordered by sequence"),
    ("appraisal_history", ["property_id"], "All appraisals ordered by timestamp"),
    ("property", ["property_id"], "Every stored fact about a property"),
]

# (name, params, optional, description)
_ATTRIBUTE_SETTERS: list[tuple[str, list[str], list[str], str]] = [
    ("set_category", ["property_id", "category"], [], "Set the category (owner only)"),
    ("set_location", ["property_id", "location"], [], "Set the location (owner only)"),
    ("set_value", ["property_id", "value"], [], "Set the valuation (owner only)"),
    ("set_tax", ["property_id", "amount"], [], "Set the tax amount (owner only)"),
    ("set_insurance", ["property_id", "insured"], ["provider"],
     "Set insurance flag and provider (owner only)"),
    ("set_occupancy", ["property_id", "occupied"], [], "Set occupancy (owner only)"),
    ("set_zoning", ["property_id", "zoning"], [], "Set zoning (owner only)"),
    ("set_age", ["property_id", "construction_year"], [],
     "Set construction year (owner only)"),
    ("add_maintenance", ["property_id", "sequence", "description", "date"], [],
     "Append a maintenance entry under a new sequence number (owner only)"),
    ("add_appraisal", ["property_id", "timestamp", "value"], [],
     "Append an appraisal under a new timestamp (owner only)"),
    ("approve_transfer", ["property_id", "candidate", "approved"], [],
     "Add or remove a transfer recipient approval (owner only)"),
]


class RegistryContract:
    """
    Named-method front end over PropertyLedger and AttributeStore.

    Handlers take (args, caller_id) and return result dicts. Successful
    mutations are recorded in the optional EventLogger.
    """

    id: str
    description: str
    ledger: PropertyLedger
    attributes: AttributeStore
    events: EventLogger | None
    methods: dict[str, RegistryMethod]

    def __init__(
        self,
        ledger: PropertyLedger,
        attributes: AttributeStore | None = None,
        events: EventLogger | None = None,
        contract_config: ContractConfig | None = None,
    ) -> None:
        """
        Args:
            ledger: Ownership ledger
            attributes: Attribute store over the same ledger (created if not provided)
            events: Optional audit log for successful mutations
            contract_config: Optional contract config (uses global if not provided)
        """
        cfg = contract_config or get_validated_config().contract
        self.id = cfg.id
        self.description = cfg.description
        self.ledger = ledger
        self.attributes = attributes or AttributeStore(ledger)
        self.events = events
        self.methods = {}
        self._overrides = dict(cfg.method_descriptions)

        self.register_method("register", self._register, True,
                             "Register a property (administrator only)", ["description"])
        self.register_method("bulk_register", self._bulk_register, True,
                             "Register up to bulk_max properties at once (administrator only)",
                             ["descriptions"])
        self.register_method("transfer", self._transfer, True,
                             "Transfer a property once; it is locked afterwards (owner only)",
                             ["property_id", "recipient"])
        self.register_method("freeze", self._freeze, True,
                             "Block future transfers without changing owner (owner only)",
                             ["property_id"])
        self.register_method("list", self._listing(True), True,
                             "Mark a property as listed (owner only)", ["property_id"])
        self.register_method("delist", self._listing(False), True,
                             "Mark a property as not listed (owner only)", ["property_id"])

        for name, params, optional, desc in _ATTRIBUTE_SETTERS:
            self.register_method(
                name, self._setter(name, len(params) + len(optional)), True,
                desc, params, optional,
            )

        for name, params, desc in _READ_METHODS:
            self.register_method(name, self._reader(name), False, desc, params)

        self.register_method("maintenance", self._maintenance, False,
                             "One maintenance entry", ["property_id", "sequence"])
        self.register_method("appraisal", self._appraisal, False,
                             "Appraised value at a timestamp", ["property_id", "timestamp"])
        self.register_method("is_transfer_approved", self._is_transfer_approved, False,
                             "Whether a candidate is approved as transfer recipient",
                             ["property_id", "candidate"])
        self.register_method("is_valid_range", self._is_valid_range, False,
                             "Whether 1 <= low <= high <= last id", ["low", "high"])
        self.register_method("next_id", self._next_id, False,
                             "Id the next registration will receive")
        self.register_method("count", self._count, False,
                             "Number of registered properties")
        self.register_method("properties_of", self._properties_of, False,
                             "Ids currently owned by a caller", ["owner"])

    # ===== METHOD TABLE =====

    def register_method(
        self,
        name: str,
        handler: Handler,
        mutating: bool,
        description: str = "",
        params: list[str] | None = None,
        optional: list[str] | None = None,
    ) -> None:
        """Register a callable method on this contract"""
        self.methods[name] = RegistryMethod(
            name=name,
            handler=handler,
            mutating=mutating,
            description=self._overrides.get(name, description),
            params=list(params or []),
            optional=list(optional or []),
        )

    def get_method(self, method_name: str) -> RegistryMethod | None:
        """Get a method by name"""
        return self.methods.get(method_name)

    def list_methods(self) -> list[MethodInfo]:
        """List available methods"""
        return [
            {"name": m.name, "mutating": m.mutating, "description": m.description}
            for m in self.methods.values()
        ]

    def get_interface(self) -> dict[str, Any]:
        """Interface schema: contract description plus each method's parameters."""
        return {
            "id": self.id,
            "description": self.description,
            "tools": [
                {
                    "name": m.name,
                    "description": m.description,
                    "mutating": m.mutating,
                    "params": m.params,
                    "optional": m.optional,
                }
                for m in self.methods.values()
            ],
        }

    # ===== DISPATCH =====

    def invoke(self, method_name: str, args: list[Any] | None, caller_id: str) -> dict[str, Any]:
        """Call a method by name and return its result dict."""
        method = self.methods.get(method_name)
        if method is None:
            return validation_error(
                f"Unknown method '{method_name}'. Use list_methods() to see available methods.",
                code=ErrorCode.UNKNOWN_METHOD,
                method=method_name,
            )
        call_args = list(args or [])
        try:
            self._check_args(method, call_args)
            result = method.handler(call_args, caller_id)
        except _BadCall as e:
            return e.response
        except RegistryError as e:
            logger.debug("%s by %s failed: %s", method_name, caller_id, e.message)
            return error_response(e)
        return result

    def _check_args(self, method: RegistryMethod, args: list[Any]) -> None:
        required = method.params
        if len(args) < len(required):
            raise _BadCall(validation_error(
                f"{method.name} requires {required} ({len(required)} args, got {len(args)}).",
                code=ErrorCode.MISSING_ARGUMENT,
                required=required,
            ))
        for name, value in zip(required, args):
            if name in _INT_PARAMS and (isinstance(value, bool) or not isinstance(value, int)):
                raise _BadCall(validation_error(
                    f"{name} must be an integer, got {type(value).__name__}: {value!r}.",
                    code=ErrorCode.INVALID_TYPE,
                    param=name,
                    provided=value,
                ))
            if name in _STR_PARAMS and not isinstance(value, str):
                raise _BadCall(validation_error(
                    f"{name} must be a string, got {type(value).__name__}: {value!r}.",
                    code=ErrorCode.INVALID_TYPE,
                    param=name,
                    provided=value,
                ))

    def _log(self, fn: Callable[[EventLogger], None]) -> None:
        if self.events is not None:
            fn(self.events)

    # ===== MUTATING HANDLERS =====

    def _register(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        property_id = self.ledger.register(invoker_id, args[0])
        self._log(lambda ev: ev.log_registered(property_id, invoker_id))
        result: RegisterResult = {
            "success": True,
            "property_id": property_id,
            "owner": invoker_id,
        }
        return dict(result)

    def _bulk_register(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        ids = self.ledger.bulk_register(invoker_id, args[0])
        for property_id in ids:
            self._log(lambda ev, pid=property_id: ev.log_registered(pid, invoker_id))
        return {"success": True, "property_ids": ids, "owner": invoker_id}

    def _transfer(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        property_id, recipient = args[0], args[1]
        if not isinstance(recipient, str) or not recipient:
            raise _BadCall(validation_error(
                f"recipient must be a non-empty string, got {recipient!r}.",
                code=ErrorCode.INVALID_TYPE,
                param="recipient",
            ))
        self.ledger.transfer(invoker_id, property_id, recipient)
        self._log(lambda ev: ev.log_transferred(property_id, invoker_id, recipient))
        result: TransferResult = {
            "success": True,
            "property_id": property_id,
            "from_owner": invoker_id,
            "to_owner": recipient,
            "locked": True,
        }
        return dict(result)

    def _freeze(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        property_id = args[0]
        self.ledger.freeze(invoker_id, property_id)
        self._log(lambda ev: ev.log_frozen(property_id, invoker_id))
        return {"success": True, "property_id": property_id, "locked": True}

    def _listing(self, listed: bool) -> Handler:
        def handler(args: list[Any], invoker_id: str) -> dict[str, Any]:
            property_id = args[0]
            self.attributes.set_listing(invoker_id, property_id, listed)
            self._log(lambda ev: ev.log_attribute_set(
                property_id, "listing", invoker_id, [listed]))
            return {"success": True, "property_id": property_id, "listed": listed}
        return handler

    def _setter(self, name: str, max_args: int) -> Handler:
        setters: dict[str, Callable[..., None]] = {
            "set_category": self.attributes.set_category,
            "set_location": self.attributes.set_location,
            "set_value": self.attributes.set_value,
            "set_tax": self.attributes.set_tax,
            "set_insurance": self.attributes.set_insurance,
            "set_occupancy": self.attributes.set_occupancy,
            "set_zoning": self.attributes.set_zoning,
            "set_age": self.attributes.set_age,
            "add_maintenance": self.attributes.append_maintenance_entry,
            "add_appraisal": self.attributes.append_appraisal_entry,
            "approve_transfer": self.attributes.set_transfer_approval,
        }
        setter = setters[name]

        def handler(args: list[Any], invoker_id: str) -> dict[str, Any]:
            property_id, rest = args[0], args[1:max_args]
            setter(invoker_id, property_id, *rest)
            self._log(lambda ev: ev.log_attribute_set(property_id, name, invoker_id, rest))
            return {"success": True, "property_id": property_id, "method": name}
        return handler

    # ===== READ-ONLY HANDLERS =====

    def _reader(self, name: str) -> Handler:
        readers: dict[str, Callable[[int], Any]] = {
            "owner": self.ledger.owner_of,
            "description": self.ledger.description,
            "is_locked": self.ledger.is_locked,
            "exists": self.ledger.exists,
            "can_transfer": self.ledger.can_transfer,
            "category": self.attributes.category,
            "location": self.attributes.location,
            "value": self.attributes.value,
            "tax": self.attributes.tax,
            "insurance": self.attributes.insurance,
            "occupancy": self.attributes.occupancy,
            "zoning": self.attributes.zoning,
            "age": self.attributes.age,
            "is_listed": self.attributes.is_listed,
            "maintenance_log": self.attributes.maintenance_log,
            "appraisal_history": self.attributes.appraisal_history,
            "property": self.attributes.snapshot,
        }
        reader = readers[name]

        def handler(args: list[Any], invoker_id: str) -> dict[str, Any]:
            result: QueryResult = {
                "success": True,
                "property_id": args[0],
                "result": reader(args[0]),
            }
            return dict(result)
        return handler

    def _maintenance(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {
            "success": True,
            "property_id": args[0],
            "result": self.attributes.maintenance_entry(args[0], args[1]),
        }

    def _appraisal(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {
            "success": True,
            "property_id": args[0],
            "result": self.attributes.appraisal(args[0], args[1]),
        }

    def _is_transfer_approved(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {
            "success": True,
            "property_id": args[0],
            "result": self.attributes.is_transfer_approved(args[0], args[1]),
        }

    def _is_valid_range(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {"success": True, "result": self.ledger.is_valid_range(args[0], args[1])}

    def _next_id(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {"success": True, "result": self.ledger.next_id()}

    def _count(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {"success": True, "result": self.ledger.count()}

    def _properties_of(self, args: list[Any], invoker_id: str) -> dict[str, Any]:
        return {"success": True, "owner": args[0], "result": self.ledger.properties_of(args[0])}
