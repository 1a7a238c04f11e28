"""Centralized dependency injection container."""
from __future__ import annotations

from dependency_injector import containers, providers

from api.shared.entities.registry import metadata
from core.settings import SETTINGS
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    """Process-wide resources."""

    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
        metadata=metadata,
        auto_create_schema=SETTINGS.DATABASE.DATABASE_AUTO_CREATE,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Built once per process and shared by every reply.
    policy_prompt = providers.Singleton(
        "assistant.prompts.support.policy.build_policy_prompt",
    )

    reply_generator = providers.Singleton(
        "assistant.reply_generator.ReplyGenerator",
        policy=policy_prompt,
        api_key=SETTINGS.OPENAI.OPENAI_API_KEY.get_secret_value(),
        model=SETTINGS.OPENAI.OPENAI_MODEL,
        fallback_model=SETTINGS.OPENAI.OPENAI_FALLBACK_MODEL,
        modern_model_prefix=SETTINGS.OPENAI.OPENAI_MODERN_MODEL_PREFIX,
        max_output_tokens=SETTINGS.OPENAI.OPENAI_MAX_OUTPUT_TOKENS,
        temperature=SETTINGS.OPENAI.OPENAI_TEMPERATURE,
        base_url=SETTINGS.OPENAI.OPENAI_BASE_URL,
        timeout=SETTINGS.OPENAI.OPENAI_TIMEOUT_SECONDS,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        reply_generator=services.reply_generator,
        history_limit=SETTINGS.CHAT.CHAT_HISTORY_LIMIT,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.features.chat.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
