"""Lookup tables that steer the naming heuristics.

The defaults below are the tables the generator ships with. They can be
extended or replaced from a YAML/JSON file via `load_tables`, so new
collections, enum names or response envelopes do not need code changes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ParseError

TABLES_VERSION = 1

# First path segment -> collection (resource group) name
_PATH_COLLECTIONS: dict[str, str] = {
    "dns": "Dns",
    "domain": "Domains",
    "handle": "Handles",
    "mail": "Emails",
    "user": "Users",
    "auth": "Auth",
    "webspace": "Webspaces",
    "tls": "Ssl",
    "reseller": "Resellers",
    "billing": "Billing",
    "invoice": "Invoices",
    "payment": "Payments",
    "rights": "Rights",
    "setting": "Settings",
    "batch": "Batch",
    "ticket": "Tickets",
    "maintenance": "Maintenance",
    "flexdns": "FlexDns",
    "gdpr": "Gdpr",
    "pgp": "Pgp",
    "vns": "Vns",
    "ens": "Ens",
    "tld": "Tlds",
    "stats": "Statistics",
    "prices": "Prices",
    "product": "Products",
    "affiliate": "Affiliates",
    "resellerPrices": "ResellerPrices",
    "file": "Files",
    "log": "Logs",
    "messageQueue": "MessageQueue",
    "domainContent": "DomainContent",
    "domainParking": "DomainParking",
}

# Parameter names whose enums are shared SDK-wide under one short name
_ENUM_PARAMETER_NAMES: dict[str, str] = {
    "status": "Status",
    "type": "Type",
    "action": "Action",
    "method": "Method",
    "state": "State",
    "role": "Role",
    "permission": "Permission",
    "mode": "Mode",
    "twoFaMethod": "TwoFaMethod",
    "two_fa_method": "TwoFaMethod",
    "section": "Section",
    "value": "Value",
    "redirectMode": "RedirectMode",
    "redirect_mode": "RedirectMode",
    "redirectCode": "RedirectCode",
    "redirect_code": "RedirectCode",
    "deleteMode": "DeleteMode",
    "delete_mode": "DeleteMode",
    "vendor": "Vendor",
    "resellerID": "ResellerID",
    "reseller_id": "ResellerID",
    "stateFilter": "StateFilter",
    "state_filter": "StateFilter",
    "selectedInterval": "SelectedInterval",
    "selected_interval": "SelectedInterval",
    "period": "Period",
    "tld": "Tld",
    "software": "Software",
    "group": "Group",
    "product": "Product",
    "products": "Products",
    "round": "Round",
    "settingsMode": "SettingsMode",
    "settings_mode": "SettingsMode",
    "userSettingsMode": "UserSettingsMode",
    "user_settings_mode": "UserSettingsMode",
    "rightsMode": "RightsMode",
    "rights_mode": "RightsMode",
    "rightsGroupsMode": "RightsGroupsMode",
    "rights_groups_mode": "RightsGroupsMode",
    "rightsCategoryMode": "RightsCategoryMode",
    "rights_category_mode": "RightsCategoryMode",
    "inheritanceMode": "InheritanceMode",
    "inheritance_mode": "InheritanceMode",
    "subresellerInheritanceMode": "SubresellerInheritanceMode",
    "subreseller_inheritance_mode": "SubresellerInheritanceMode",
    "subuserInheritanceMode": "SubuserInheritanceMode",
    "subuser_inheritance_mode": "SubuserInheritanceMode",
    "renewalMode": "RenewalMode",
    "renewal_mode": "RenewalMode",
    "expireDays": "ExpireDays",
    "expire_days": "ExpireDays",
    "ipVersion": "IpVersion",
    "ip_version": "IpVersion",
    "flexDNSipVersion": "IpVersion",
}

# PascalCase parameter names that map to themselves as shared enums
_SHARED_ENUM_CONCEPTS: tuple[str, ...] = (
    "TwoFaMethod",
    "Section",
    "Value",
    "RedirectMode",
    "RedirectCode",
    "SettingsMode",
    "RightsMode",
)

# Envelope property -> (DTO class, is_array). Order matters: first hit wins.
_RESPONSE_PROPERTY_DTOS: dict[str, tuple[str, bool]] = {
    "domain": ("Domain", False),
    "domains": ("Domain", True),
    "user": ("User", False),
    "users": ("User", True),
    "reseller": ("Reseller", False),
    "resellers": ("Reseller", True),
    "webspace": ("Webspace", False),
    "webspaces": ("Webspace", True),
    "invoice": ("Invoice", False),
    "invoices": ("Invoice", True),
    "order": ("Order", False),
    "orders": ("Order", True),
    "tls": ("Tls", False),
    "tlsCertificate": ("TlsCertificate", False),
    "tlsCertificates": ("Tls", True),
    "mail": ("EmailAddress", False),
    "mails": ("EmailAddress", True),
    "emailAddress": ("EmailAddress", False),
    "emailAddresses": ("EmailAddress", True),
    "handle": ("Handle", False),
    "handles": ("Handle", True),
    "ticket": ("Ticket", False),
    "tickets": ("Ticket", True),
    "batch": ("BatchProcessing", False),
    "batches": ("BatchProcessing", True),
    "pushRequest": ("PushRequest", False),
    "pushRequests": ("PushRequest", True),
}

# Leading endpoint-name tokens dropped when building enum context names
_VERB_PREFIXES: tuple[str, ...] = (
    "get_",
    "post_",
    "put_",
    "patch_",
    "delete_",
    "head_",
    "options_",
)


@dataclass(frozen=True)
class LookupTables:
    """Versioned bundle of every table the heuristics consult."""

    version: int = TABLES_VERSION
    path_collections: dict[str, str] = field(default_factory=lambda: dict(_PATH_COLLECTIONS))
    enum_parameter_names: dict[str, str] = field(
        default_factory=lambda: dict(_ENUM_PARAMETER_NAMES)
    )
    shared_enum_concepts: tuple[str, ...] = _SHARED_ENUM_CONCEPTS
    response_property_dtos: dict[str, tuple[str, bool]] = field(
        default_factory=lambda: dict(_RESPONSE_PROPERTY_DTOS)
    )
    verb_prefixes: tuple[str, ...] = _VERB_PREFIXES

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LookupTables:
        """Merge an override mapping over the default tables.

        Each table entry is either a mapping of additions or
        ``{"replace": true, "entries": ...}`` to discard the defaults.
        """
        defaults = cls()
        unknown = set(data) - {
            "version",
            "path_collections",
            "enum_parameter_names",
            "shared_enum_concepts",
            "response_property_dtos",
            "verb_prefixes",
        }
        if unknown:
            raise ParseError(f"Unknown lookup table(s): {', '.join(sorted(unknown))}")

        version = data.get("version", TABLES_VERSION)
        if version != TABLES_VERSION:
            raise ParseError(
                f"Unsupported lookup table version {version!r} (expected {TABLES_VERSION})"
            )

        return cls(
            version=version,
            path_collections=_merge_mapping(
                defaults.path_collections, data.get("path_collections")
            ),
            enum_parameter_names=_merge_mapping(
                defaults.enum_parameter_names, data.get("enum_parameter_names")
            ),
            shared_enum_concepts=_merge_sequence(
                defaults.shared_enum_concepts, data.get("shared_enum_concepts")
            ),
            response_property_dtos=_merge_response_dtos(
                defaults.response_property_dtos, data.get("response_property_dtos")
            ),
            verb_prefixes=_merge_sequence(defaults.verb_prefixes, data.get("verb_prefixes")),
        )


def _unwrap(override: Any) -> tuple[Any, bool]:
    """Split an override into (entries, replace_flag)."""
    if isinstance(override, Mapping) and "entries" in override:
        return override["entries"], bool(override.get("replace", False))
    return override, False


def _merge_mapping(base: dict[str, str], override: Any) -> dict[str, str]:
    if override is None:
        return dict(base)
    entries, replace = _unwrap(override)
    if not isinstance(entries, Mapping):
        raise ParseError("Lookup table override must be a mapping")
    merged = {} if replace else dict(base)
    merged.update({str(k): str(v) for k, v in entries.items()})
    return merged


def _merge_sequence(base: tuple[str, ...], override: Any) -> tuple[str, ...]:
    if override is None:
        return base
    entries, replace = _unwrap(override)
    if isinstance(entries, (str, Mapping)) or not hasattr(entries, "__iter__"):
        raise ParseError("Lookup table override must be a list")
    merged = [] if replace else list(base)
    for item in entries:
        if str(item) not in merged:
            merged.append(str(item))
    return tuple(merged)


def _merge_response_dtos(
    base: dict[str, tuple[str, bool]], override: Any
) -> dict[str, tuple[str, bool]]:
    if override is None:
        return dict(base)
    entries, replace = _unwrap(override)
    if not isinstance(entries, Mapping):
        raise ParseError("response_property_dtos override must be a mapping")
    merged = {} if replace else dict(base)
    for prop, target in entries.items():
        if isinstance(target, str):
            merged[str(prop)] = (target, False)
        elif isinstance(target, Mapping) and "dto" in target:
            merged[str(prop)] = (str(target["dto"]), bool(target.get("array", False)))
        else:
            raise ParseError(f"Invalid response DTO mapping for {prop!r}")
    return merged


def load_tables(path: Path) -> LookupTables:
    """Read a YAML or JSON override file and merge it over the defaults."""
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ParseError(f"Cannot read lookup tables from {path}: {exc}") from exc

    if data is None:
        return LookupTables()
    if not isinstance(data, Mapping):
        raise ParseError(f"Lookup tables in {path} must be a mapping")
    return LookupTables.from_mapping(data)
