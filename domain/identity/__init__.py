from .entity import AccessToken, Certificate

__all__ = ["AccessToken", "Certificate"]
