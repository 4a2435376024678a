"""
Concrete provider adapters.

Each adapter pins down one provider's authentication scheme, collection
paths and native payload field names; everything else is inherited.
"""

from ats_connect.data.models.connection import AtsConnection
from ats_connect.utils.constants import AtsProvider, EntityType

from .base import ProviderAdapter, basic_auth


class WorkdayAdapter(ProviderAdapter):
    """Workday Recruiting: HTTP Basic with an integration user."""

    provider = AtsProvider.WORKDAY
    credential_keys = ("username", "password")

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {
            "Authorization": basic_auth(
                connection.credential("username"), connection.credential("password")
            )
        }


class GreenhouseAdapter(ProviderAdapter):
    """Greenhouse Harvest API: the API key is the Basic username."""

    provider = AtsProvider.GREENHOUSE
    credential_keys = ("api_key",)
    jobs_path = "/v1/jobs"
    candidates_path = "/v1/candidates"
    applications_path = "/v1/applications"
    field_paths = {
        EntityType.JOB: {
            "title": "name",
            "department": "departments.0.name",
            "location": "offices.0.name",
            "description": "notes",
            "hiring_manager": "hiring_team.hiring_managers.0.name",
            "recruiter": "hiring_team.recruiters.0.name",
            "posted_at": "opened_at",
            "expires_at": "closed_at",
        },
        EntityType.CANDIDATE: {
            "email": "email_addresses.0.value",
            "phone": "phone_numbers.0.value",
            "address": "addresses.0.value",
            "current_title": "title",
            "current_company": "company",
        },
        EntityType.APPLICATION: {
            "external_job_id": "jobs.0.id",
            "status": "status",
            "applied_at": "applied_at",
            "status_updated_at": "last_activity_at",
            "rejection_reason": "rejection_reason.name",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": basic_auth(connection.credential("api_key"), "")}


class LeverAdapter(ProviderAdapter):
    """Lever: candidates and applications are both opportunities."""

    provider = AtsProvider.LEVER
    credential_keys = ("api_key",)
    jobs_path = "/v1/postings"
    candidates_path = "/v1/opportunities"
    applications_path = "/v1/opportunities"
    field_paths = {
        EntityType.JOB: {
            "title": "text",
            "department": "categories.team",
            "location": "categories.location",
            "employment_type": "categories.commitment",
            "description": "descriptionPlain",
            "status": "state",
            "posted_at": "createdAt",
            "hiring_manager": "hiringManager",
            "recruiter": "owner",
        },
        EntityType.CANDIDATE: {
            "first_name": "name",
            "email": "emails.0",
            "phone": "phones.0.value",
            "address": "location",
            "current_title": "headline",
        },
        EntityType.APPLICATION: {
            "external_job_id": "applications.0.posting",
            "external_candidate_id": "id",
            "status": "stage",
            "applied_at": "createdAt",
            "status_updated_at": "lastInteractionAt",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": f"Bearer {connection.credential('api_key')}"}


class BambooHRAdapter(ProviderAdapter):
    """BambooHR: API key as Basic username with a literal 'x' password."""

    provider = AtsProvider.BAMBOOHR
    credential_keys = ("api_key",)
    jobs_path = "/v1/meta/jobs"
    candidates_path = "/v1/applicants"
    applications_path = "/v1/applications"
    field_paths = {
        EntityType.JOB: {
            "title": "title.label",
            "department": "department.label",
            "location": "location.label",
            "status": "status.label",
            "posted_at": "postedDate",
            "hiring_manager": "hiringLead.name",
        },
        EntityType.CANDIDATE: {
            "first_name": "firstName",
            "last_name": "lastName",
            "email": "email",
            "phone": "phoneNumber",
        },
        EntityType.APPLICATION: {
            "external_job_id": "job.id",
            "external_candidate_id": "applicant.id",
            "status": "status.label",
            "applied_at": "appliedDate",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": basic_auth(connection.credential("api_key"), "x")}


class SuccessFactorsAdapter(ProviderAdapter):
    """SAP SuccessFactors OData v2: OAuth bearer token, records under d.results."""

    provider = AtsProvider.SUCCESSFACTORS
    credential_keys = ("oauth_token",)
    jobs_path = "/odata/v2/JobRequisition"
    candidates_path = "/odata/v2/Candidate"
    applications_path = "/odata/v2/JobApplication"
    collection_paths = {
        EntityType.JOB: "d.results",
        EntityType.CANDIDATE: "d.results",
        EntityType.APPLICATION: "d.results",
    }
    field_paths = {
        EntityType.JOB: {
            "external_job_id": "jobReqId",
            "title": "jobTitle",
            "department": "department",
            "location": "location",
            "status": "status",
        },
        EntityType.CANDIDATE: {
            "external_candidate_id": "candidateId",
            "first_name": "firstName",
            "last_name": "lastName",
            "email": "primaryEmail",
            "phone": "cellPhone",
        },
        EntityType.APPLICATION: {
            "external_application_id": "applicationId",
            "external_job_id": "jobReqId",
            "external_candidate_id": "candidateId",
            "status": "status",
            "applied_at": "appliedDate",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": f"Bearer {connection.credential('oauth_token')}"}


class TaleoAdapter(ProviderAdapter):
    """Oracle Taleo: session token passed as an authToken cookie."""

    provider = AtsProvider.TALEO
    credential_keys = ("auth_token",)
    jobs_path = "/object/requisition/search"
    candidates_path = "/object/candidate/search"
    applications_path = "/object/application/search"

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Cookie": f"authToken={connection.credential('auth_token')}"}


class ICIMSAdapter(ProviderAdapter):
    """iCIMS: bearer token, paths scoped by customer id."""

    provider = AtsProvider.ICIMS
    credential_keys = ("access_token", "customer_id")
    jobs_path = "/customers/{customer_id}/jobs"
    candidates_path = "/customers/{customer_id}/people"
    applications_path = "/customers/{customer_id}/applications"
    field_paths = {
        EntityType.JOB: {
            "title": "jobtitle",
            "location": "joblocation.value",
        },
        EntityType.CANDIDATE: {
            "first_name": "firstname",
            "last_name": "lastname",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": f"Bearer {connection.credential('access_token')}"}


class JazzHRAdapter(ProviderAdapter):
    """JazzHR: API key as Basic username."""

    provider = AtsProvider.JAZZ
    credential_keys = ("api_key",)
    jobs_path = "/recruiting/jobs"
    candidates_path = "/recruiting/applicants"
    applications_path = "/recruiting/applications"
    field_paths = {
        EntityType.JOB: {
            "location": "city",
            "employment_type": "type",
            "posted_at": "original_open_date",
        },
        EntityType.CANDIDATE: {
            "phone": "prospect_phone",
        },
        EntityType.APPLICATION: {
            "external_candidate_id": "applicant_id",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": basic_auth(connection.credential("api_key"), "")}


class BullhornAdapter(ProviderAdapter):
    """Bullhorn REST: session token in the BhRestToken header."""

    provider = AtsProvider.BULLHORN
    credential_keys = ("rest_token",)
    jobs_path = "/search/JobOrder"
    candidates_path = "/search/Candidate"
    applications_path = "/search/JobSubmission"
    field_paths = {
        EntityType.JOB: {
            "employment_type": "employmentType",
            "location": "address.city",
            "posted_at": "dateAdded",
            "expires_at": "dateEnd",
            "salary": "salary",
            "hiring_manager": "clientContact.name",
            "recruiter": "owner.name",
        },
        EntityType.CANDIDATE: {
            "first_name": "firstName",
            "last_name": "lastName",
            "address": "address.city",
            "current_title": "occupation",
            "current_company": "companyName",
        },
        EntityType.APPLICATION: {
            "external_job_id": "jobOrder.id",
            "external_candidate_id": "candidate.id",
            "applied_at": "dateAdded",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"BhRestToken": connection.credential("rest_token")}


class JobviteAdapter(ProviderAdapter):
    """Jobvite v2: bearer API key."""

    provider = AtsProvider.JOBVITE
    credential_keys = ("api_key",)
    jobs_path = "/v2/jobs"
    candidates_path = "/v2/candidates"
    applications_path = "/v2/applications"
    field_paths = {
        EntityType.JOB: {
            "external_job_id": "eId",
            "department": "category",
            "employment_type": "jobType",
            "hiring_manager": "primaryHiringManagerName",
            "recruiter": "primaryRecruiterName",
        },
        EntityType.CANDIDATE: {
            "external_candidate_id": "eId",
            "first_name": "firstName",
            "last_name": "lastName",
        },
        EntityType.APPLICATION: {
            "external_application_id": "application.eId",
            "external_job_id": "application.job.eId",
            "external_candidate_id": "eId",
            "status": "application.workflowState",
        },
    }

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {"Authorization": f"Bearer {connection.credential('api_key')}"}


class GenericAdapter(ProviderAdapter):
    """Fallback for unrecognized providers: no authentication, plain paths."""

    provider = None

    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        return {}
