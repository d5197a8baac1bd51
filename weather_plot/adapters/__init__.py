from weather_plot.adapters.records import coerce_points, coerce_records, coerce_values, load_records

__all__ = ["coerce_points", "coerce_records", "coerce_values", "load_records"]
