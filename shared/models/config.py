from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting a client needs before it can boot.

    Attributes:
        env_key (str): Raw key name; the client prefixes it with "<TYPE>_<ENGINE>_".
        val_type (str): "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Fallback when unset. None marks the key as required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
