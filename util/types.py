# util/types.py
from typing import Literal


Option = Literal["A", "B", "C", "D"]
OPTIONS: tuple[Option, ...] = ("A", "B", "C", "D")

# Flow: every settled gateway call becomes one of these outcomes.
Outcome = Literal["success", "failure", "empty"]

NoticeLevel = Literal["info", "error"]
