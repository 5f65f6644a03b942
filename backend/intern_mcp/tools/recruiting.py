# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Recruiting Tools

Internship-recruiting actions exposed over MCP. Each handler is a thin
REST call against the recruiting API; failures are re-raised with the
action that failed prefixed to the API message.
"""
import json
import logging
from typing import Any, Dict, Optional

from intern_mcp.api_client import RecruitingAPIClient
from intern_mcp.tools.dispatch import ToolDispatchTable, ToolResult, text_result

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/internal-service"


class RecruitingToolError(Exception):
    """A recruiting action failed."""
    pass


def _require(args: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if args.get(name) in (None, "")]
    if missing:
        raise RecruitingToolError(f"Missing required argument(s): {', '.join(missing)}")


def _format_response(result: Any) -> str:
    return f"API Response: {json.dumps(result, indent=2)}"


class RecruitingTools:
    """Handlers for the recruiting tools, bound to one API client"""

    def __init__(self, api_client: RecruitingAPIClient):
        self.api = api_client

    async def recommend_candidate(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "candidateId", "companyId", "pocId")
        recommendation = {
            "intern_id": args["candidateId"],
            "host_companies": [{"host_company_id": args["companyId"]}],
        }
        for arg_name, field in (
            ("careerFieldId", "career_field_id"),
            ("batchId", "batch_id"),
            ("applicationId", "application_id"),
        ):
            if args.get(arg_name) is not None:
                recommendation[field] = args[arg_name]

        payload = {
            "flow_type": "COMPANY_INTERN",
            "comment": args.get("comment") or "Recommendation from MCP server",
            "email_subject": "Recommendation from MCP server",
            "recommendation_data": [recommendation],
            "pocs": [{"host_company_id": args["companyId"], "poc_id": args["pocId"]}],
        }

        try:
            result = await self.api.post(f"{API_PREFIX}/recommendation", payload)
        except Exception as e:
            raise RecruitingToolError(f"Failed to create recommendation: {e}") from e

        return text_result(
            f'Successfully recommended candidate "{args["candidateId"]}" '
            f'to company "{args["companyId"]}".\n\n{_format_response(result)}'
        )

    async def shortlist_intern(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "internId")
        payload: Dict[str, Any] = {"intern_id": args["internId"]}
        if args.get("internshipOpportunityId") is not None:
            payload["internship_opportunity_id"] = args["internshipOpportunityId"]
        if args.get("companyId") is not None:
            payload["host_company_id"] = args["companyId"]

        try:
            result = await self.api.post(f"{API_PREFIX}/shortlist", payload)
        except Exception as e:
            raise RecruitingToolError(f"Failed to shortlist intern: {e}") from e

        return text_result(
            f'Successfully shortlisted intern "{args["internId"]}".\n\n{_format_response(result)}'
        )

    async def schedule_interview(self, args: Dict[str, Any]) -> ToolResult:
        _require(
            args,
            "internshipOpportunityId",
            "internId",
            "interviewLink",
            "interviewerId",
            "startTime",
            "endTime",
        )
        payload = {
            "internship_opportunity_id": args["internshipOpportunityId"],
            "intern_id": args["internId"],
            "interview_link": args["interviewLink"],
            "meeting_passcode": args.get("meetingPasscode"),
            "interviewer_id": args["interviewerId"],
            "interview_timeslots": {
                "start_date_time": args["startTime"],
                "end_date_time": args["endTime"],
                "interview_duration": args.get("durationMinutes", 60),
            },
            "is_log_interview": 0,
            "is_generate_meeting_link": 0,
        }

        try:
            result = await self.api.post(f"{API_PREFIX}/host-company/interview", payload)
        except Exception as e:
            raise RecruitingToolError(f"Failed to schedule interview: {e}") from e

        return text_result(
            f'Successfully scheduled interview for intern "{args["internId"]}" '
            f'from {args["startTime"]} to {args["endTime"]}.\n\n{_format_response(result)}'
        )

    async def cancel_interview(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "interviewId", "cancelledBy")
        payload = {"cancelled_by": args["cancelledBy"]}
        if args.get("reason"):
            payload["reason"] = args["reason"]

        try:
            result = await self.api.put(
                f"{API_PREFIX}/host-company/interview/{args['interviewId']}/cancel",
                payload
            )
        except Exception as e:
            raise RecruitingToolError(f"Failed to cancel interview: {e}") from e

        return text_result(
            f'Successfully cancelled interview "{args["interviewId"]}" '
            f'(cancelled by {args["cancelledBy"]}).\n\n{_format_response(result)}'
        )

    async def list_career_fields(self, args: Dict[str, Any]) -> ToolResult:
        try:
            result = await self.api.get(f"{API_PREFIX}/career-fields")
        except Exception as e:
            raise RecruitingToolError(f"Failed to list career fields: {e}") from e

        return text_result(f"Career fields:\n\n{_format_response(result)}")

    async def list_internship_opportunities(self, args: Dict[str, Any]) -> ToolResult:
        params: Optional[Dict[str, Any]] = None
        if args.get("careerFieldId") is not None:
            params = {"career_field_id": args["careerFieldId"]}

        try:
            result = await self.api.get(f"{API_PREFIX}/internship-opportunities", params=params)
        except Exception as e:
            raise RecruitingToolError(f"Failed to list internship opportunities: {e}") from e

        return text_result(f"Internship opportunities:\n\n{_format_response(result)}")


def register_recruiting_tools(table: ToolDispatchTable, api_client: RecruitingAPIClient) -> RecruitingTools:
    """Register every recruiting tool on the dispatch table"""
    tools = RecruitingTools(api_client)

    table.register(
        name="recommend_candidate",
        handler=tools.recommend_candidate,
        description="Recommend a candidate to a company for an internship position",
        input_schema={
            "type": "object",
            "properties": {
                "candidateId": {"type": "number", "description": "Id of the candidate"},
                "companyId": {"type": "number", "description": "Id of the company"},
                "pocId": {"type": "number", "description": "Id of the company point of contact"},
                "careerFieldId": {"type": "number", "description": "Id of the career field"},
                "batchId": {"type": "number", "description": "Id of the intern batch"},
                "applicationId": {"type": "number", "description": "Id of the intern application"},
                "comment": {"type": "string", "description": "Recommendation comment"}
            },
            "required": ["candidateId", "companyId", "pocId"]
        }
    )

    table.register(
        name="shortlist_intern",
        handler=tools.shortlist_intern,
        description="Shortlist an intern for an internship opportunity",
        input_schema={
            "type": "object",
            "properties": {
                "internId": {"type": "string", "description": "ID of the intern"},
                "internshipOpportunityId": {
                    "type": "number",
                    "description": "ID of the internship opportunity"
                },
                "companyId": {"type": "number", "description": "Id of the host company"}
            },
            "required": ["internId"]
        }
    )

    table.register(
        name="schedule_interview",
        handler=tools.schedule_interview,
        description="Schedule an interview between candidate and company",
        input_schema={
            "type": "object",
            "properties": {
                "internshipOpportunityId": {"type": "number", "description": "ID of the job description"},
                "internId": {"type": "number", "description": "ID of the candidate"},
                "interviewLink": {"type": "string", "description": "Interview link for the interview"},
                "interviewerId": {
                    "type": "string",
                    "description": "Interviewer id who is conducting the interview"
                },
                "startTime": {"type": "string", "description": "Interview start date and time (ISO format)"},
                "endTime": {"type": "string", "description": "Interview end date and time (ISO format)"},
                "durationMinutes": {
                    "type": "number",
                    "description": "Interview length in minutes",
                    "default": 60
                },
                "meetingPasscode": {"type": "string", "description": "Meeting passcode, if any"}
            },
            "required": [
                "internshipOpportunityId",
                "internId",
                "interviewLink",
                "interviewerId",
                "startTime",
                "endTime"
            ]
        }
    )

    table.register(
        name="cancel_interview",
        handler=tools.cancel_interview,
        description="Cancel a scheduled interview",
        input_schema={
            "type": "object",
            "properties": {
                "interviewId": {"type": "number", "description": "ID of the interview"},
                "cancelledBy": {
                    "type": "string",
                    "enum": ["Intern", "HC"],
                    "description": "Who is cancelling the interview"
                },
                "reason": {"type": "string", "description": "Cancellation reason"}
            },
            "required": ["interviewId", "cancelledBy"]
        }
    )

    table.register(
        name="list_career_fields",
        handler=tools.list_career_fields,
        description="List the career fields internships are offered in",
        input_schema={"type": "object", "properties": {}, "required": []}
    )

    table.register(
        name="list_internship_opportunities",
        handler=tools.list_internship_opportunities,
        description="List open internship opportunities, optionally for one career field",
        input_schema={
            "type": "object",
            "properties": {
                "careerFieldId": {"type": "number", "description": "Only opportunities in this career field"}
            },
            "required": []
        }
    )

    return tools
