from .predicates import ContextAllowlistSpec, DisableStagesSpec, GlobalPredicateSpec
from .remote import ConfigSnapshot, PastebinHost, RemoteConfigCache, load_config_file, parse_config_document
from .settings import Settings, load_settings

__all__ = [
    "ConfigSnapshot",
    "ContextAllowlistSpec",
    "DisableStagesSpec",
    "GlobalPredicateSpec",
    "PastebinHost",
    "RemoteConfigCache",
    "Settings",
    "load_config_file",
    "load_settings",
    "parse_config_document",
]
