from .review_validators import ReviewValidatorMixin, validate_model

__all__ = ["ReviewValidatorMixin", "validate_model"]
