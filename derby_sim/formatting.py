def format_distance(meters):
    """1200 -> '1200m'"""
    return f"{meters}m"


def format_finish_time(seconds):
    """Elapsed race time as shown next to a result, e.g. '12.35s'."""
    return f"{seconds:.2f}s"
