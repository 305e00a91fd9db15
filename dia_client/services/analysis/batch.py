from typing import Callable, List, Optional
import logging
import uuid

from pydantic import BaseModel, Field

from dia_client.enums.analysis import AnalysisMode, BatchItemStatus
from dia_client.exceptions import AuthError, DiaClientError
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.analysis.executions.analysis_run import AnalysisRunInfo
from dia_client.schemas.document import DocumentInfo
from dia_client.services.analysis.run_config import RunConfiguration
from dia_client.services.analysis.submission import SubmissionService, build_run_request

logger = logging.getLogger(__name__)

ItemProgressCallback = Callable[[str, BatchItemStatus], None]
BatchProgressCallback = Callable[[float], None]


class BatchItem(BaseModel):
    """One document of a batch submission"""
    document: DocumentInfo
    status: BatchItemStatus = BatchItemStatus.PENDING
    run: Optional[AnalysisRunInfo] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Outcome of a batch submission"""
    batch_id: str
    items: List[BatchItem] = Field(default_factory=list)

    @property
    def submitted(self) -> List[BatchItem]:
        return [i for i in self.items if i.status == BatchItemStatus.SUBMITTED]

    @property
    def failed(self) -> List[BatchItem]:
        return [i for i in self.items if i.status == BatchItemStatus.FAILED]


class BatchProcessor:
    """Submits one run configuration for several documents."""

    def __init__(self, submission: SubmissionService):
        self.submission = submission

    @staticmethod
    def items_for(documents: List[DocumentInfo]) -> List[BatchItem]:
        return [BatchItem(document=document) for document in documents]

    async def process_batch(
        self,
        items: List[BatchItem],
        definition: AnalysisDefinition,
        mode: AnalysisMode,
        configuration: RunConfiguration,
        on_item_progress: Optional[ItemProgressCallback] = None,
        on_batch_progress: Optional[BatchProgressCallback] = None,
        batch_id: Optional[str] = None,
    ) -> BatchResult:
        """
        Submit the configuration for every pending item, one at a time.

        Items are updated in place. Items that are not pending are passed
        through unchanged. A failure of one item is recorded on that item and
        the batch continues, except for AuthError which ends the batch: items
        processed so far keep their outcome and the rest stay pending, so
        calling again with the same items resumes the batch.

        Args:
            items: Batch items to process
            definition: Analysis definition to run
            mode: Analysis execution mode
            configuration: Run configuration applied to every document
            on_item_progress: Called with (document_id, status) on each item transition
            on_batch_progress: Called with the completed percentage after each item
            batch_id: Identifier recorded in each run's metadata; generated if omitted

        Returns:
            BatchResult with the updated items
        """
        batch_id = batch_id or str(uuid.uuid4())
        total = len(items)
        logger.info(f"Starting batch {batch_id} with {total} documents for {definition.code}")

        for index, item in enumerate(items):
            if item.status == BatchItemStatus.PENDING:
                await self._process_item(
                    item, index, total, batch_id, definition, mode, configuration, on_item_progress
                )
            self._report_batch(on_batch_progress, index + 1, total)

        result = BatchResult(batch_id=batch_id, items=list(items))
        logger.info(
            f"Finished batch {batch_id}: {len(result.submitted)} submitted, {len(result.failed)} failed"
        )
        return result

    async def _process_item(
        self,
        item: BatchItem,
        index: int,
        total: int,
        batch_id: str,
        definition: AnalysisDefinition,
        mode: AnalysisMode,
        configuration: RunConfiguration,
        on_item_progress: Optional[ItemProgressCallback],
    ) -> None:
        document = item.document
        item.status = BatchItemStatus.SUBMITTING
        self._report_item(on_item_progress, document.id, BatchItemStatus.SUBMITTING)

        try:
            request = build_run_request(document, definition, mode, configuration)
            request.config.metadata.update({
                "analysis_type": "batch",
                "batch_id": batch_id,
                "total_documents": total,
                "document_index": index,
            })
            run = await self.submission.submit(request)
        except AuthError as e:
            # not submitted, stays pending
            logger.error(f"Batch {batch_id} stopped at document {document.id}: {e.message}")
            item.status = BatchItemStatus.PENDING
            item.error = e.message
            self._report_item(on_item_progress, document.id, BatchItemStatus.PENDING)
            raise
        except DiaClientError as e:
            logger.error(f"Batch {batch_id}: document {document.id} failed: {e.message}")
            item.status = BatchItemStatus.FAILED
            item.error = e.message
            self._report_item(on_item_progress, document.id, BatchItemStatus.FAILED)
            return

        item.status = BatchItemStatus.SUBMITTED
        item.run = run
        item.error = None
        self._report_item(on_item_progress, document.id, BatchItemStatus.SUBMITTED)

    @staticmethod
    def _report_item(callback: Optional[ItemProgressCallback], document_id: str, status: BatchItemStatus) -> None:
        if callback:
            callback(document_id, status)

    @staticmethod
    def _report_batch(callback: Optional[BatchProgressCallback], done: int, total: int) -> None:
        if callback and total:
            callback(done / total * 100)
