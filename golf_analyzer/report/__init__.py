from .charts import ChartGenerator
