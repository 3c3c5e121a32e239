from pydantic import BaseModel, Field

from .data.base import AgeBracket, EstimationResult, FormInput, WearLevel
from .services.estimator_service import EstimatorFormController

class FormInputModel(BaseModel):
    brand: str = ""
    category: str = ""
    original_price: str = ""
    wear_level: WearLevel = WearLevel.NOT_WORN
    age_bracket: AgeBracket = AgeBracket.LESS_THAN_1_YEAR

    @classmethod
    def from_form(cls, form: FormInput) -> "FormInputModel":
        return cls(
            brand=form.brand,
            category=form.category,
            original_price=form.original_price,
            wear_level=form.wear_level,
            age_bracket=form.age_bracket,
        )

    def to_form(self) -> FormInput:
        return FormInput(**self.model_dump())

class FieldUpdate(BaseModel):
    value: str

class EstimateResponse(BaseModel):
    estimated_price: str
    source_input: FormInputModel
    currency: str = "USD"
    disclaimer: str = "This is an AI-generated estimate, not an appraisal."

    @classmethod
    def from_result(cls, result: EstimationResult) -> "EstimateResponse":
        return cls(
            estimated_price=result.estimated_price,
            source_input=FormInputModel.from_form(result.source_input),
        )

class FormView(BaseModel):
    state: str = Field(description="editing | loading | result")
    form: FormInputModel
    errors: dict[str, str] = {}
    failure: str | None = None
    result: EstimateResponse | None = None

    @classmethod
    def from_controller(cls, controller: EstimatorFormController) -> "FormView":
        if controller.loading:
            state = "loading"
        elif controller.result is not None:
            state = "result"
        else:
            state = "editing"
        result = controller.result
        return cls(
            state=state,
            form=FormInputModel.from_form(controller.form),
            errors=controller.errors,
            failure=controller.failure,
            result=EstimateResponse.from_result(result) if result else None,
        )

class ValidationErrorResponse(BaseModel):
    detail: str = "Validation failed"
    errors: dict[str, str]
