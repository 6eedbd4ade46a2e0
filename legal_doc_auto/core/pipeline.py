"""
Document generation pipeline.

Single synchronous flow per request:

1. Identity - the caller must map to an organization
2. Entitlement - subscription active and under its document limit
3. Template - identifier must resolve to a stored template
4. Prompt - compiled by the document-type registry
5. Generation - routed across backends, never fails outright
6. Sanitization - placeholders resolved, signature block ensured
7. Persistence - artifacts rendered, uploaded and recorded

Guard failures (1-4) surface with their specific code. Failures in 5-7 are
logged in full and reported with a generic message.
"""

import logging
import os
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from legal_doc_auto.config.loader import AppConfig
from legal_doc_auto.prompts.registry import DocumentTypeRegistry, compile_prompt, get_registry
from legal_doc_auto.rendering import DocxRenderer, PdfRenderer
from legal_doc_auto.sdk.router import GenerationRouter, build_router, resolve_default_backend
from legal_doc_auto.storage.blob_store import BlobStore, LocalBlobStore, signing_secret_from_env
from legal_doc_auto.storage.repository import (
    DocumentRepository,
    OrganizationRepository,
    TemplateRepository,
    UserProfileRepository,
    initialize_schema,
)

from .entitlements import enforce_entitlement
from .errors import (
    GENERIC_FAILURE_MESSAGE,
    AuthError,
    DocumentPipelineError,
    GenerationError,
    PersistenceError,
    TemplateNotFound,
)
from .persistence import ArtifactPersistenceCoordinator, PersistedDocument
from .sanitizer import ContentSanitizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated actor and their organization."""
    user_id: str
    organization_id: str


@dataclass(frozen=True)
class GenerationRequest:
    template_id: str
    form_data: Mapping[str, Any]
    ai_provider: Optional[str] = None

    def __post_init__(self):
        # Freeze a private copy so later mutation by the caller has no effect
        object.__setattr__(self, "form_data", MappingProxyType(dict(self.form_data or {})))


class ProfileIdentityProvider:
    """Resolves a user id to an Identity through user_profiles."""

    def __init__(self, profiles: UserProfileRepository):
        self.profiles = profiles

    def resolve(self, user_id: Optional[str]) -> Identity:
        """Raises AuthError when the user is absent or has no organization."""
        if not user_id or not user_id.strip():
            raise AuthError("Unauthorized")
        profile = self.profiles.get(user_id.strip())
        if profile is None:
            raise AuthError("Unauthorized")
        return Identity(user_id=profile.id, organization_id=profile.organization_id)


class DocumentPipeline:
    """Orchestrates one generation request end to end."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        templates: TemplateRepository,
        router: GenerationRouter,
        persistence: ArtifactPersistenceCoordinator,
        sanitizer: Optional[ContentSanitizer] = None,
        registry: Optional[DocumentTypeRegistry] = None,
        default_backend: str = "test",
        today: Optional[Callable[[], date]] = None,
    ):
        self.organizations = organizations
        self.templates = templates
        self.router = router
        self.persistence = persistence
        self.registry = registry or get_registry()
        self.today = today or date.today
        self.sanitizer = sanitizer or ContentSanitizer(registry=self.registry, today=self.today)
        self.default_backend = default_backend

    def generate(self, identity: Optional[Identity], request: GenerationRequest) -> PersistedDocument:
        """Generate, store and record one document.

        Args:
            identity: Authenticated caller, or None
            request: Template identifier, field map and optional backend hint

        Returns:
            PersistedDocument with the record and download references

        Raises:
            AuthError: No identity or unknown organization
            EntitlementError: Subscription inactive or limit reached
            TemplateNotFound: Unknown template identifier
            InvalidFieldsError: Field map fails a consistency check
            GenerationError: Generation or sanitization failed
            PersistenceError: Artifacts or record could not be stored
        """
        if identity is None:
            raise AuthError("Unauthorized")
        organization = self.organizations.get(identity.organization_id)
        if organization is None:
            raise AuthError("Unauthorized")

        enforce_entitlement(
            organization.subscription_tier,
            organization.subscription_status,
            organization.documents_used,
        )

        template = self.templates.get(request.template_id)
        if template is None:
            raise TemplateNotFound("Template not found")

        fields = dict(request.form_data)
        try:
            prompt = compile_prompt(
                template.id,
                fields,
                today=self.today(),
                registry=self.registry,
                display_name=template.name,
            )
        except DocumentPipelineError:
            raise
        except Exception as e:
            logger.exception("Prompt compilation failed for %s", template.id)
            raise GenerationError(GENERIC_FAILURE_MESSAGE) from e

        backend = request.ai_provider or self.default_backend
        try:
            raw_text = self.router.generate(
                backend, prompt.system_instruction, prompt.user_instruction
            )
            document = self.sanitizer.sanitize(raw_text, template.id, fields)
        except Exception as e:
            logger.exception("Document generation failed for %s", template.id)
            raise GenerationError(GENERIC_FAILURE_MESSAGE) from e

        try:
            return self.persistence.persist(
                organization, identity.user_id, template, document, fields
            )
        except DocumentPipelineError:
            raise
        except Exception as e:
            logger.exception("Unexpected persistence failure for %s", template.id)
            raise PersistenceError(GENERIC_FAILURE_MESSAGE) from e


@dataclass(frozen=True)
class Services:
    """Process-wide collaborators, assembled once at startup."""
    pipeline: DocumentPipeline
    blob_store: BlobStore
    identity_provider: ProfileIdentityProvider
    templates: TemplateRepository
    organizations: OrganizationRepository


def build_services(config: Optional[AppConfig] = None, env: Optional[Mapping[str, str]] = None) -> Services:
    """Wire storage, renderers, router and pipeline from configuration.

    Args:
        config: AppConfig (defaults to built-in defaults)
        env: Environment mapping for secrets (defaults to os.environ)

    Raises:
        ValueError: If the signing secret is not set
    """
    config = config or AppConfig()
    env = os.environ if env is None else env
    storage = config.storage

    initialize_schema(storage.database_path)
    blob_store = LocalBlobStore(storage.blob_root, signing_secret_from_env(env))
    organizations = OrganizationRepository(storage.database_path)
    templates = TemplateRepository(storage.database_path)
    persistence = ArtifactPersistenceCoordinator(
        docx_renderer=DocxRenderer(),
        pdf_renderer=PdfRenderer(),
        blob_store=blob_store,
        documents=DocumentRepository(storage.database_path),
        download_ttl_seconds=storage.download_ttl_seconds,
    )
    pipeline = DocumentPipeline(
        organizations=organizations,
        templates=templates,
        router=build_router(config, env),
        persistence=persistence,
        default_backend=resolve_default_backend(config.generation, env),
    )
    return Services(
        pipeline=pipeline,
        blob_store=blob_store,
        identity_provider=ProfileIdentityProvider(UserProfileRepository(storage.database_path)),
        templates=templates,
        organizations=organizations,
    )
