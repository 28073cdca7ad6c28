from signpad.models.submission import FormSubmission

__all__ = ["FormSubmission"]
