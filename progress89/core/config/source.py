import functools
import os
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import progress89.lib.util as util
from progress89.model import DeploymentEnvironment

BootKeys: t.Final[frozenset[str]] = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]
    override: tuple[str, ...]


def load_paths(state: CurrentState) -> list[Path]:
    """Directories searched for YAML files, least specific first"""
    root = state["root"]
    if root.scheme != "file" or root.path is None:
        raise SettingsError(f"{root} is not a legible location of YAML files")
    env = state["env"]
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        # local/ has no directory of its own, it is just the root
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    @property
    def state(self) -> CurrentState:
        return t.cast(CurrentState, self.current_state)

    def __call__(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            if field_name in BootKeys:
                continue
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except (ValueError, yaml.YAMLError) as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class OverrideSettingsSource(SettingsSource):
    """
    Supplies `-o dotted.key=value` overrides. It must take priority over the
    YAML source; pydantic-settings deep-merges the two.
    """

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        od: dict[str, t.Any] = {}
        for o in self.state.get("override", ()):
            k, v = [s.strip() for s in o.split("=", 1)]
            util.set_path(od, k, yaml.safe_load(v))
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = self.parsed_options[field_name]
        return val, field_name, isinstance(val, dict)


class YAMLCascadingSettingsSource(SettingsSource):
    """
    Reads `<field>.yaml` for each settings field from every load path,
    deep-merging more specific files over less specific ones.
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        return load_paths(self.state)

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        found = [fn for fn in (path / f"{field_name}.yaml" for path in self.load_paths) if fn.exists()]
        if not found:
            raise KeyError(field_name)
        merged: dict[str, t.Any] = {}
        for fn in found:
            merged = util.deep_update(merged, yaml.safe_load(fn.read_text(encoding="utf8")) or {})
        return merged, field_name, True


class YAMLSecretsSource(SettingsSource):
    """
    Reads `secrets.yaml` from the most specific load path which has one, then
    applies environment variables such as `PROGRESS89_SECRETS__AUTH__JWT`.
    """

    env_prefix: t.ClassVar[str] = "PROGRESS89_SECRETS__"

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}
        found = [fn for fn in (path / "secrets.yaml" for path in load_paths(self.state)) if fn.exists()]
        if found:
            data = yaml.safe_load(found[-1].read_text(encoding="utf8")) or {}

        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                dotted = key.removeprefix(self.env_prefix).lower().replace("__", ".")
                util.set_path(data, dotted, value)
        return data

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)
