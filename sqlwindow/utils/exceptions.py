class SQLWindowError(Exception):
    """Base class for all sqlwindow exceptions."""
    pass

# DB-API 2.0 style base classes
class Error(SQLWindowError):
    pass

class DatabaseError(Error):
    pass

class DataError(DatabaseError):
    pass

class OperationalError(DatabaseError):
    pass

class InternalError(DatabaseError):
    pass

class ProgrammingError(DatabaseError):
    pass

class NotSupportedError(DatabaseError):
    pass

# Evaluation errors

class SQLSyntaxError(ProgrammingError):
    def __init__(self, message, line=None, column=None, hint=None, context=None, token=None):
        self.message = message
        self.line = line
        self.column = column
        self.hint = hint
        self.context = context
        self.token = token
        super().__init__(self._format_message())

    def _format_message(self):
        parts = [f"SQLSyntaxError: {self.message}"]
        if self.line is not None and self.column is not None:
            parts.append(f" at line {self.line}, column {self.column}")
        formatted = ''.join(parts)
        if self.context:
            formatted += f"\n\n  {self.context}"
        if self.hint:
            formatted += f"\n\nHint: {self.hint}"
        return formatted

class UnsupportedFeatureError(NotSupportedError):
    def __init__(self, feature, hint=None):
        self.feature = feature
        self.hint = hint
        message = f"Feature '{feature}' is not supported"
        if hint:
            message += f" ({hint})"
        super().__init__(message)

class ColumnNotFoundError(ProgrammingError):
    def __init__(self, column_name, row_index=None):
        self.column_name = column_name
        self.row_index = row_index
        if row_index is not None:
            super().__init__(f"Column '{column_name}' not found in row {row_index}")
        else:
            super().__init__(f"Column '{column_name}' not found")

class ColumnAlreadyExistsError(ProgrammingError):
    def __init__(self, column_name):
        self.column_name = column_name
        super().__init__(f"Column '{column_name}' already exists")

class MissingOrderByError(ProgrammingError):
    def __init__(self, function_name):
        self.function_name = function_name
        super().__init__(f"{function_name}() requires an ORDER BY in its window")

class InvalidArgumentError(ProgrammingError):
    def __init__(self, function_name, details):
        self.function_name = function_name
        self.details = details
        super().__init__(f"Invalid argument to {function_name}(): {details}")

class InvalidOffsetError(InvalidArgumentError):
    def __init__(self, function_name, offset):
        self.offset = offset
        super().__init__(function_name, f"offset must be a positive integer, got {offset!r}")

class TypeMismatchError(DataError):
    def __init__(self, expected_type, actual_type, column=None):
        self.expected_type = expected_type
        self.actual_type = actual_type
        self.column = column
        if column:
            super().__init__(f"Type mismatch for column '{column}': expected {expected_type}, got {actual_type}")
        else:
            super().__init__(f"Type mismatch: expected {expected_type}, got {actual_type}")
