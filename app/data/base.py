from dataclasses import dataclass, field, replace
from enum import Enum

# ----- Closed choices (values are what the model sees) -----

class WearLevel(str, Enum):
    NOT_WORN = "Not Worn"
    LIGHT = "Light Wear"
    MEDIUM = "Medium Wear"
    HEAVY = "Heavy Wear"

class AgeBracket(str, Enum):
    LESS_THAN_1_YEAR = "Less than 1 year"
    ONE_TO_TWO_YEARS = "1-2 years"
    TWO_TO_FOUR_YEARS = "2-4 years"
    FOUR_PLUS_YEARS = "4+ years"

# ----- Data shapes (thin & explicit) -----

@dataclass
class FormInput:
    brand: str = ""
    category: str = ""
    original_price: str = ""    # kept as typed; validated against the price pattern
    wear_level: WearLevel = WearLevel.NOT_WORN
    age_bracket: AgeBracket = AgeBracket.LESS_THAN_1_YEAR

    def snapshot(self) -> "FormInput":
        return replace(self)

@dataclass(frozen=True)
class EstimationResult:
    estimated_price: str        # numeric text, e.g. "45.00"
    source_input: FormInput

FIELD_NAMES = ("brand", "category", "original_price", "wear_level", "age_bracket")

# field name -> message
ValidationErrors = dict[str, str]

# ----- Controller states -----

@dataclass(frozen=True)
class Editing:
    errors: ValidationErrors = field(default_factory=dict)
    failure: str | None = None   # set after an upstream failure

@dataclass(frozen=True)
class Loading:
    submitted: FormInput

@dataclass(frozen=True)
class ShowingResult:
    result: EstimationResult

EstimatorState = Editing | Loading | ShowingResult
