"""Celery application setup and worker initialization."""

import logging

import httpx
from celery import Celery, signals
from kombu import Queue

from notify_shared.config import KafkaConfig, PostgresConfig
from notify_shared.db.base import create_db_engine, create_session_factory

from message_dispatcher.config import CeleryConfig, DispatchConfig
from message_dispatcher.log import setup_logging
from message_dispatcher.providers import ProviderFactory, create_default_factory
from message_dispatcher.publisher import KafkaExecutionDetailPublisher

logger = logging.getLogger(__name__)

celery_config = CeleryConfig()

app = Celery("message_dispatcher", broker=celery_config.broker_url)

app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_queues=[Queue(celery_config.queue)],
    task_default_queue=celery_config.queue,
)

app.autodiscover_tasks(["message_dispatcher"])


@signals.worker_init.connect
def _init_worker(**_kwargs: object) -> None:
    """Initialize shared resources once per worker process."""
    dispatch_config = DispatchConfig()
    setup_logging(dispatch_config.log_level)

    pg_config = PostgresConfig()
    engine = create_db_engine(pg_config.dsn, pool_pre_ping=True)
    session_factory = create_session_factory(engine)

    provider_factory = create_default_factory(
        httpx.Client(timeout=dispatch_config.provider_timeout_seconds)
    )

    publisher = None
    if dispatch_config.publish_execution_details:
        publisher = KafkaExecutionDetailPublisher(KafkaConfig())

    app.conf.update(
        _session_factory=session_factory,
        _provider_factory=provider_factory,
        _detail_publisher=publisher,
        _dispatch_config=dispatch_config,
    )
    logger.info(
        "Worker initialized",
        extra={"publish_execution_details": publisher is not None},
    )


@signals.worker_shutdown.connect
def _shutdown_worker(**_kwargs: object) -> None:
    """Clean up resources on worker shutdown."""
    publisher: KafkaExecutionDetailPublisher | None = getattr(
        app.conf, "_detail_publisher", None
    )
    if publisher is not None:
        publisher.close()
    provider_factory: ProviderFactory | None = getattr(
        app.conf, "_provider_factory", None
    )
    if provider_factory is not None:
        provider_factory.close()
    logger.info("Worker shut down")
