#!filepath: flint/config/control_config.py
from pydantic import BaseModel


class ControlConfig(BaseModel):
    """
    Breakpoint control channels.
    """

    break_before_test: bool = False
    console_control: bool = True
    chat_control: bool = False
