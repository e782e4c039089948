import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from progress89.model import BaseModel


class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    """Settings node which may be built from a plain dict, as Configuration.as_() does"""

    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)

    def model_dump(self, *, by_alias: bool | None = True, **kwargs: t.Any) -> dict[str, t.Any]:
        # invert default by_alias to True
        return super().model_dump(by_alias=by_alias, **kwargs)


class BaseSecrets(BaseSettings): ...
