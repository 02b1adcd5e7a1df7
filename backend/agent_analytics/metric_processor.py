"""
Per-metric pipeline: fetch rows, build the prompt, ask the model, parse.
"""

import logging
from datetime import date
from typing import Optional, Protocol

from agent_analytics.analysis_models import AnalysisResult, MetricAnalysis, reconcile_significance
from agent_analytics.connectors.base import DataSource
from agent_analytics.errors import log_errors
from agent_analytics.metrics_config import MetricDescriptor
from agent_analytics.prompt_builder import SYSTEM_INSTRUCTION, build_analysis_prompt
from agent_analytics.response_parser import parse_analysis_response

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate_content(self, model_name: str, prompt: str, system_instruction: str,
                               temperature: Optional[float] = None,
                               max_output_tokens: Optional[int] = None) -> Optional[str]:
        ...


class MetricProcessor:
    """Runs one metric through the analysis pipeline. No retries."""

    def __init__(self, data_source: DataSource, llm: TextGenerator, model_name: str):
        self.data_source = data_source
        self.llm = llm
        self.model_name = model_name

    @log_errors("Metric Processing")
    async def process(self, metric: MetricDescriptor, today: Optional[date] = None) -> AnalysisResult:
        """
        Analyzes one metric.

        A fetch that yields nothing continues with no data; exceptions from
        the data source or the model propagate to the caller.
        """
        logger.info(f"Awaiting data from Dune for metric: {metric.name} (query {metric.query_id})")
        data = await self.data_source.fetch_latest(metric.query_id, metric.limit)
        logger.info(f"Data fetched from Dune for metric: {metric.name} ({len(data) if data else 0} chars)")

        prompt = build_analysis_prompt(metric, data, today)

        logger.info(f"Awaiting model response for metric: {metric.name}")
        logger.debug(f"Sending prompt to {self.model_name} ({len(prompt)} chars)")
        raw_result = await self.llm.generate_content(
            model_name=self.model_name,
            prompt=prompt,
            system_instruction=SYSTEM_INSTRUCTION,
        )
        logger.info(f"Received model response for metric: {metric.name}")

        result = parse_analysis_response(raw_result, metric.name)
        if isinstance(result, MetricAnalysis):
            result = reconcile_significance(result)
        return result
