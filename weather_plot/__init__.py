from weather_plot.accessors import (
    CLOUD_COVER,
    DATE,
    DEW_POINT,
    HUMIDITY,
    TEMPERATURE_MAX,
    Accessor,
    BinCountAccessor,
    DateFieldAccessor,
    FieldAccessor,
)
from weather_plot.binning import Bin, bin_records
from weather_plot.charts import HistogramChart, ScatterChart, TimelineChart, build_chart
from weather_plot.config import AxisConfig, ChartConfig, SizeConfig, load_chart_config
from weather_plot.errors import (
    DegenerateDomainError,
    EmptyDomainError,
    InvalidLayoutError,
    OutOfRangeQuery,
    PlotDataError,
)
from weather_plot.events import PointerLeave, PointerMove, ViewportResize
from weather_plot.interaction import ChartSession, Tooltip, handle_pointer
from weather_plot.layout import Dimensions, Margins, compute_dimensions
from weather_plot.nearest import AxisIndex, PlanarIndex, build_planar_index, nearest_by_axis
from weather_plot.scales import LinearScale, TimeScale, extent, make_linear_scale, make_time_scale

__all__ = [
    "CLOUD_COVER",
    "DATE",
    "DEW_POINT",
    "HUMIDITY",
    "TEMPERATURE_MAX",
    "Accessor",
    "AxisConfig",
    "AxisIndex",
    "Bin",
    "BinCountAccessor",
    "ChartConfig",
    "ChartSession",
    "DateFieldAccessor",
    "DegenerateDomainError",
    "Dimensions",
    "EmptyDomainError",
    "FieldAccessor",
    "HistogramChart",
    "InvalidLayoutError",
    "LinearScale",
    "Margins",
    "OutOfRangeQuery",
    "PlanarIndex",
    "PlotDataError",
    "PointerLeave",
    "PointerMove",
    "ScatterChart",
    "SizeConfig",
    "TimeScale",
    "TimelineChart",
    "Tooltip",
    "ViewportResize",
    "bin_records",
    "build_chart",
    "build_planar_index",
    "compute_dimensions",
    "extent",
    "handle_pointer",
    "load_chart_config",
    "make_linear_scale",
    "make_time_scale",
    "nearest_by_axis",
]
