"""
Validation of the loaded library config against the rules declared in
config_validation.yaml
"""

# Standard
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

# First Party
import aconfig
import alog

# Local
from .. import constants
from ..schema_version import is_valid_version
from ..utils import nested_get

log = alog.use_channel("CONFG")

# The python types accepted for each rule type in the validation file. A map
# rule holds a dict whose values all pass a rule of its value type. A version
# rule holds a parsable schema version.
RULE_TYPES = {
    "number": (int, float),
    "int": (int,),
    "str": (str,),
    "bool": (bool,),
    "enum": (str, int),
    "version": (str,),
    "map": (dict,),
}

Bound = Optional[Union[int, float]]


@dataclass(frozen=True)
class ConfigRule:
    """A single rule from the validation file"""

    type: str
    optional: bool = False
    min: Bound = None
    max: Bound = None
    min_len: Optional[int] = None
    max_len: Optional[int] = None
    values: Optional[Tuple[Any, ...]] = None
    value_type: Optional[str] = None

    def __post_init__(self):
        assert self.type in RULE_TYPES, f"Unknown rule type: {self.type}"
        if self.type == "enum":
            assert self.values, "Enum rules need at least one value"
        if self.type == "map":
            assert (
                self.value_type in RULE_TYPES
            ), f"Map rules need a known value_type, got {self.value_type}"

    def check(self, value: Any) -> bool:
        """Check a config value against this rule"""
        if value is None:
            return self.optional
        if not self._type_ok(self.type, value):
            log.warning("Invalid type <%s> for %s rule", type(value), self.type)
            return False
        if self.type == "map":
            value_rule = ConfigRule(self.value_type)
            return all(value_rule.check(val) for val in value.values())
        if self.type == "version":
            return is_valid_version(value)
        if self.type == "enum":
            return value in self.values
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        if self.min_len is not None and len(value) < self.min_len:
            return False
        if self.max_len is not None and len(value) > self.max_len:
            return False
        return True

    @staticmethod
    def _type_ok(rule_type: str, value: Any) -> bool:
        # bool is an int subclass and only passes where bool is asked for
        if isinstance(value, bool) and rule_type != "bool":
            return False
        return isinstance(value, RULE_TYPES[rule_type])


def load_rules(
    validation_config: aconfig.Config,
    prefix: Optional[List[str]] = None,
) -> Dict[str, ConfigRule]:
    """Walk the validation file and collect a rule for every dotted key. A
    mapping with a known "type" is a rule; any other mapping is a nested
    section.
    """
    rules = {}
    prefix = prefix or []
    for key, val in validation_config.items():
        if not isinstance(val, dict):
            continue
        parts = prefix + [key]
        dotted = constants.NESTED_DICT_DELIM.join(parts)
        if val.get("type") in RULE_TYPES:
            args = dict(val)
            if "values" in args:
                args["values"] = tuple(args["values"])
            rules[dotted] = ConfigRule(**args)
            log.debug3("Loaded rule for [%s]: %s", dotted, rules[dotted])
        else:
            rules.update(load_rules(val, prefix=parts))
    return rules


def get_invalid_params(
    config: aconfig.Config,
    validation_config: aconfig.Config,
) -> List[str]:
    """Get the dotted keys of all config values that break their rule

    Args:
        config:  aconfig.Config
            The parsed config with any override values
        validation_config:  aconfig.Config
            The parallel config holding the rules

    Returns:
        invalid_params:  List[str]
            Keys of all values that fail validation
    """
    invalid_params = []
    for key, rule in load_rules(validation_config).items():
        value = nested_get(config, key)
        if not rule.check(value):
            log.warning("Found invalid config key [%s]: %s", key, value)
            invalid_params.append(key)
    return invalid_params
