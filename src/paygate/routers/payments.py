from fastapi import APIRouter

from paygate.models.requests import (
    ApplicationListResponse,
    ApplicationResponse,
    ReviewRequest,
    SubmitPaymentRequest,
)
from paygate.routers.deps import CurrentIdentity, Workflow
from paygate.shared import Logger

logger = Logger(__name__).get_logger()

router = APIRouter(prefix="/payments", tags=["payments"])

# Routes are plain functions: field encryption is CPU-bound and runs in the
# thread pool instead of blocking the event loop.


@router.post("/submit", status_code=201, response_model=ApplicationResponse)
def submit(
    identity: CurrentIdentity,
    workflow: Workflow,
    data: SubmitPaymentRequest | None = None,
):
    data = data or SubmitPaymentRequest()
    logger.debug("Submission from %s", identity.username)
    application = workflow.submit(identity, data.fields())
    return ApplicationResponse(
        message="Payment application submitted successfully", application=application
    )


@router.get("/all", response_model=ApplicationListResponse)
def list_all(identity: CurrentIdentity, workflow: Workflow):
    return ApplicationListResponse(
        message="Payment applications retrieved successfully",
        applications=workflow.list_all(identity),
    )


@router.get("/my-applications", response_model=ApplicationListResponse)
def list_mine(identity: CurrentIdentity, workflow: Workflow):
    return ApplicationListResponse(
        message="Your payment applications retrieved successfully",
        applications=workflow.list_mine(identity),
    )


@router.get("/status/{status}", response_model=ApplicationListResponse)
def list_by_status(status: str, identity: CurrentIdentity, workflow: Workflow):
    applications = workflow.list_by_status(identity, status)
    return ApplicationListResponse(
        message=f"{status} payment applications retrieved successfully",
        applications=applications,
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: str, identity: CurrentIdentity, workflow: Workflow):
    return ApplicationResponse(
        message="Payment application retrieved successfully",
        application=workflow.get(identity, application_id),
    )


@router.patch("/review/{application_id}", response_model=ApplicationResponse)
def review(
    application_id: str,
    identity: CurrentIdentity,
    workflow: Workflow,
    data: ReviewRequest | None = None,
):
    """Approve or reject a Pending application. Employees only, exactly once."""
    data = data or ReviewRequest()
    logger.debug("Review of %s requested by %s", application_id, identity.username)
    application = workflow.review(identity, application_id, data.decision, data.comments)
    return ApplicationResponse(
        message=f"Payment application {application.status.lower()} successfully",
        application=application,
    )
