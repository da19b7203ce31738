from math import floor


def calculate_columns(available_width: int, cell_size: int, spacing: int) -> int:
    """Calculates the maximum number of columns that fit within the available width."""
    # Account for the constant padding on the left and right of the container.
    content_width = available_width - (2 * spacing)
    if content_width < cell_size:
        return 1  # Not enough space for one cell, but we always show at least one.

    # N*size + (N-1)*spacing <= content_width  =>  N*(size+spacing) <= content_width + spacing
    cell_width = cell_size + spacing
    if cell_width <= 0:
        return 1

    columns = floor((content_width + spacing) / cell_width)
    return max(1, columns)
