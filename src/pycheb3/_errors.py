"""Exceptions raised by PyCheb3 evaluation and tensor routines."""


class ShapeError(ValueError):
    """Array shapes do not agree.

    Raised when coordinate arrays passed to an evaluation differ in shape,
    or when a mode product is asked to contract a matrix whose column
    count differs from the tensor dimension along that mode.
    """


class UnsupportedEvaluationShape(TypeError):
    """The combination of evaluation arguments is not supported.

    Raised when the kinds of ``(x, y, z)`` (whole axis, scalar, vector,
    matrix, tensor or path) do not match any entry of the dispatch table.
    """
