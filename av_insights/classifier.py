"""
Classifier - claims pending articles and records an LLM analysis for each.

Flow per article:
1. Truncate cleaned content to the input budget
2. Keyword heuristic; articles that fail it are skipped without a model call
3. Structured-output model call, retried on rate limits
4. Relevance gate (model verdict and score threshold) picks done or skipped
"""

import asyncio
import logging
from dataclasses import dataclass

from .analysis import ARTICLE_ANALYSIS_SCHEMA, SCHEMA_NAME, ArticleAnalysis
from .config import config
from .database import AIStatus, Database, DBArticle
from .exceptions import ModelTimeoutError, StoreError, truncate_error
from .providers import LLMProvider
from .relevance import DEFAULT_RULES, RelevanceRules, looks_relevant
from .retry import with_retries
from .text import truncate

logger = logging.getLogger(__name__)

HEURISTIC_SKIP_REASON = "Heuristic: not AV-relevant"
MODEL_NOT_RELEVANT_REASON = "Model: not AV relevant"


@dataclass
class ClassificationOutcome:
    """What gets written back for one article."""
    status: AIStatus
    analysis: ArticleAnalysis
    skipped_reason: str | None = None


@dataclass
class BatchResult:
    claimed: int = 0
    done: int = 0
    skipped: int = 0
    errors: int = 0


def resolve_outcome(analysis: ArticleAnalysis, threshold: float) -> ClassificationOutcome:
    """Apply the relevance gate to a model analysis."""
    if not analysis.av_relevance:
        return ClassificationOutcome(AIStatus.SKIPPED, analysis, MODEL_NOT_RELEVANT_REASON)
    if analysis.relevance_score < threshold:
        return ClassificationOutcome(
            AIStatus.SKIPPED, analysis, f"Model: relevance_score < {threshold}"
        )
    return ClassificationOutcome(AIStatus.DONE, analysis)


class ArticleClassifier:
    """LLM-powered AV relevance classifier with multi-provider support."""

    SYSTEM_PROMPT = """You are an autonomous vehicle (AV) industry analyst.

Analyze the article and output structured fields about AV relevance, summary, companies, and categorization.

- av_relevance: true only if the article is substantively about autonomous driving, robotaxis, driver assistance, or the companies building them
- relevance_score: 0 to 1, how central AV is to the article
- summary: 3 to 5 short factual bullet sentences
- companies: companies named in the article that matter to the story
- regulatory_relevance: true if the article concerns laws, regulators, permits, or investigations"""

    TEMPERATURE = 0.2

    def __init__(
        self,
        db: Database,
        provider: LLMProvider | None,
        rules: RelevanceRules = DEFAULT_RULES,
        threshold: float | None = None,
        batch_size: int | None = None,
        max_input_chars: int | None = None,
        max_output_tokens: int | None = None,
        max_retries: int | None = None,
        model_timeout: float | None = None,
        sleep=asyncio.sleep,
    ):
        """
        Initialize classifier.

        Args:
            db: Database holding the article queue
            provider: LLM provider; None only works for heuristic-skipped articles
            rules: Keyword tiers for the pre-model heuristic
            threshold: Minimum relevance_score for a done article
            batch_size: Articles claimed per run
            max_input_chars: Content budget sent to the model
            max_output_tokens: Response token budget
            max_retries: Rate-limit retries per model call
            model_timeout: Seconds allowed for each model attempt
            sleep: Backoff sleep, replaceable in tests
        """
        self.db = db
        self.provider = provider
        self.rules = rules
        self.threshold = config.AV_RELEVANCE_THRESHOLD if threshold is None else threshold
        self.batch_size = batch_size or config.AI_BATCH_SIZE
        self.max_input_chars = max_input_chars or config.OPENAI_MAX_INPUT_CHARS
        self.max_output_tokens = max_output_tokens or config.OPENAI_MAX_OUTPUT_TOKENS
        self.max_retries = config.OPENAI_MAX_RETRIES if max_retries is None else max_retries
        self.model_timeout = config.MODEL_TIMEOUT_SECONDS if model_timeout is None else model_timeout
        self._sleep = sleep

    def _build_prompt(self, article: DBArticle, text: str) -> str:
        return f"Title: {article.title}\nURL: {article.url}\n\nCONTENT:\n{text}"

    async def _call_model(self, prompt: str) -> ArticleAnalysis:
        if self.provider is None:
            raise RuntimeError("No LLM provider configured")

        async def call() -> ArticleAnalysis:
            try:
                response = await asyncio.wait_for(
                    self.provider.complete_async(
                        user_prompt=prompt,
                        system_prompt=self.SYSTEM_PROMPT,
                        max_tokens=self.max_output_tokens,
                        temperature=self.TEMPERATURE,
                        use_cache=True,
                        json_schema=ARTICLE_ANALYSIS_SCHEMA,
                        schema_name=SCHEMA_NAME,
                    ),
                    timeout=self.model_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ModelTimeoutError(self.model_timeout) from e
            return ArticleAnalysis.from_model_output(response.text)

        return await with_retries(call, max_retries=self.max_retries, sleep=self._sleep)

    async def analyze(self, article: DBArticle) -> ClassificationOutcome:
        """
        Classify one article.

        Raises whatever the provider raises once retries are exhausted, and
        AnalysisError for unusable output.
        """
        text = truncate(article.cleaned_content or "", self.max_input_chars)

        if not looks_relevant(f"{article.title}\n{text}", self.rules):
            return ClassificationOutcome(
                AIStatus.SKIPPED, ArticleAnalysis.not_relevant(), HEURISTIC_SKIP_REASON
            )

        analysis = await self._call_model(self._build_prompt(article, text))
        return resolve_outcome(analysis, self.threshold)

    def save(self, article_id: int, outcome: ClassificationOutcome):
        """Persist an outcome. Raises StoreError if the article is no longer claimed."""
        self.db.articles.save_classification(
            article_id,
            outcome.status,
            skipped_reason=outcome.skipped_reason,
            **outcome.analysis.to_record(),
        )

    def _mark_error(self, article_id: int, err: BaseException):
        try:
            if not self.db.mark_article_error(article_id, truncate_error(err)):
                logger.warning(f"Article {article_id} left processing before its error was recorded")
        except StoreError as e:
            logger.error(f"Failed to mark article {article_id} as error: {e}")

    async def run_batch(self) -> BatchResult:
        """
        Claim one batch and classify it sequentially.

        A failure on one article is recorded on that article and the batch
        moves on. StoreError from the claim itself propagates.
        """
        result = BatchResult()
        articles = self.db.claim_pending_articles(self.batch_size)
        result.claimed = len(articles)

        if not articles:
            logger.info("No pending articles")
            return result

        logger.info(f"Claimed {len(articles)} article(s)")

        for article in articles:
            try:
                outcome = await self.analyze(article)
                self.save(article.id, outcome)
            except asyncio.CancelledError:
                self._mark_error(article.id, RuntimeError("Worker cancelled"))
                raise
            except Exception as e:
                logger.error(f"Article {article.id} failed: {truncate_error(e)}")
                self._mark_error(article.id, e)
                result.errors += 1
                continue

            if outcome.status == AIStatus.DONE:
                result.done += 1
                logger.info(f"Article {article.id} done (score {outcome.analysis.relevance_score:.2f})")
            else:
                result.skipped += 1
                logger.info(f"Article {article.id} skipped: {outcome.skipped_reason}")

        return result
