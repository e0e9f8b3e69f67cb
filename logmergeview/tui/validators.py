from textual.validation import ValidationResult, Validator


class LineNumberValidator(Validator):
    """Accepts a 1-based line number within the displayed merged log."""
    def __init__(self, max_line: int):
        super().__init__("Invalid line number")
        self.max_line = max_line

    def validate(self, value: str) -> ValidationResult:
        try:
            line_number = int(value)
            if not 1 <= line_number <= self.max_line:
                raise ValueError(f"line number must be between 1 and {self.max_line}")
        except ValueError as ve:
            message = str(ve)
            if message.startswith("invalid literal"):
                message = f"{value!r} is not a line number"
            return self.failure(message.capitalize())
        else:
            return self.success()
