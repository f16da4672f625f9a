"""REST client for chipster services.

The client finds the services from the service locator, authenticates with
tokens sent as HTTP Basic auth passwords and converts error responses to
exceptions from `chipster_client.exceptions`.

Example:
    >>> client = RestClient(True, service_locator_uri="https://chipster.example.org/service-locator")
    >>> client.set_token(client.get_token("alice", "secret"))
    >>> [session.name for session in client.get_sessions()]
    ['my analysis']
"""

import base64
import json
import os
import sys
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Type, Union

import requests
import yaml

from chipster_client.config import Config
from chipster_client.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ConnectionError,
    ForbiddenError,
    HttpError,
    InternalServerError,
    NotFoundError,
    TimeoutError,
)
from chipster_client.logger import get_logger
from chipster_client.models import (
    ChipsterModel,
    Dataset,
    Job,
    JobState,
    Module,
    Rule,
    Service,
    Session,
    Tool,
)

log = get_logger(__file__)

CHUNK_SIZE = 8192
STDIO = "-"

HTTP_ERRORS: Dict[int, Type[HttpError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
}

Headers = Dict[str, str]


def iter_chunks(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Read `stream` in chunks until it is exhausted."""
    return iter(lambda: stream.read(chunk_size), b"")


class RestClient:
    """REST client for chipster services.

    A client (command line tools and other user facing programs) is given the
    service locator address and uses the public addresses of the services. A
    server (another microservice) reads the internal service locator address
    from the configuration and uses the internal addresses.
    """

    def __init__(
        self,
        is_client: bool,
        token: Optional[str] = None,
        service_locator_uri: Optional[str] = None,
        is_quiet: bool = False,
        timeout: int = 30,
        config: Optional[Config] = None,
    ) -> None:
        """Initialize REST client.

        Args:
            is_client: True for user facing programs, False for services
            token: Authentication token
            service_locator_uri: Address of the service locator (clients only)
            is_quiet: Don't log progress messages
            timeout: Request timeout in seconds
            config: Configuration for servers, read from disk if not given
        """
        self.is_client = is_client
        self.is_quiet = is_quiet
        self.timeout = timeout
        self.config: Optional[Config] = None
        self.services: Optional[List[Service]] = None
        self.session = requests.Session()

        if is_client:
            self.set_service_locator_uri(service_locator_uri)
        else:
            self.config = config if config is not None else Config()
            self.service_locator_uri = self.config.get(Config.KEY_URL_INT_SERVICE_LOCATOR)
        self.set_token(token)

    def set_quiet(self, is_quiet: bool) -> None:
        self.is_quiet = is_quiet

    def set_service_locator_uri(self, uri: Optional[str]) -> None:
        self.service_locator_uri = uri

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def info(self, message: str) -> None:
        """Log a progress message unless quiet."""
        if not self.is_quiet:
            log.info(message)

    # authentication

    def get_basic_auth_header(
        self, username: str, password: Optional[str], headers: Optional[Headers] = None
    ) -> Headers:
        """Add an HTTP Basic Authorization header.

        Args:
            username: User name, "token" when authenticating with a token
            password: Password or token
            headers: Existing headers to extend, a new dict if not given

        Returns:
            The headers
        """
        if headers is None:
            headers = {}
        credentials = f"{username}:{password}".encode("utf-8")
        headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")
        return headers

    def get_token(self, username: str, password: str) -> str:
        """Log in and return a new token.

        Clients find the auth service from the public services. Servers look it up
        from the internal services using the same credentials.

        Args:
            username: User or service name
            password: Password

        Returns:
            The response body of the auth service

        Raises:
            AuthenticationError: If the credentials are not accepted
        """
        if self.is_client:
            auth_uri = self.get_auth_uri()
        else:
            auth_uri = self.get_internal_auth_uri(username, password)
        return self.post(auth_uri + "/tokens/", self.get_basic_auth_header(username, password))

    def get_auth_public_key(self, token: Optional[str] = None) -> str:
        """Get the public key the auth service signs tokens with."""
        return self.get_with_token(
            self.get_auth_uri() + "/tokens/publicKey", token if token else self.token
        )

    def get_status(self, host: str) -> Dict[str, Any]:
        """Get the admin status of a service."""
        return self.get_json(host + "/admin/status", self.token)

    # service discovery

    def get_services(self) -> List[Service]:
        """Return the services, asking the service locator only once.

        Returns:
            Public services for clients, internal services for servers
        """
        if self.services is None:
            if self.is_client:
                self.services = self.get_services_uncached()
            else:
                self.services = self.get_internal_services()
        return self.services

    def get_services_uncached(self) -> List[Service]:
        self.info(f"get public services from {self.service_locator_uri}")
        services = self.get_json(f"{self.service_locator_uri}/services", None)
        return [Service.model_validate(s) for s in services]

    def get_internal_services(self) -> List[Service]:
        self.info(f"get internal services from {self.service_locator_uri}")
        services = self.get_json(f"{self.service_locator_uri}/services/internal", self.token)
        return [Service.model_validate(s) for s in services]

    def get_internal_auth_uri(self, username: str, password: str) -> str:
        """Find the internal address of the auth service.

        Used before a server has a token, so the service locator is called with
        the username and password instead.

        Raises:
            InternalServerError: If there is no auth service
        """
        self.info(f"get internal auth address from {self.service_locator_uri}")
        body = self.get(
            f"{self.service_locator_uri}/services/internal",
            self.get_basic_auth_header(username, password),
        )
        services = [Service.model_validate(s) for s in json.loads(body)]
        auths = [s.uri for s in services if s.role == "auth"]
        if auths:
            return auths[0]
        raise InternalServerError("no auths found")

    def get_service_uri(self, role: str) -> str:
        """Return the address of the service with `role`.

        Raises:
            InternalServerError: If the service locator doesn't know the role or
                has no address for it
        """
        for service in self.get_services():
            uri = service.public_uri if self.is_client else service.uri
            if service.role == role and uri:
                return uri
        raise InternalServerError(f"service not found {role}")

    def get_auth_uri(self) -> str:
        return self.get_service_uri("auth")

    def get_file_broker_uri(self) -> str:
        return self.get_service_uri("file-broker")

    def get_session_db_uri(self) -> str:
        return self.get_service_uri("session-db")

    def get_session_db_events_uri(self) -> str:
        return self.get_service_uri("session-db-events")

    def get_toolbox_uri(self) -> str:
        return self.get_service_uri("toolbox")

    def get_session_worker_uri(self) -> str:
        return self.get_service_uri("session-worker")

    def get_service_locator(self, web_server: str) -> str:
        """Read the service locator address from the configuration of a web server.

        Args:
            web_server: Address of the web app, e.g. "https://chipster.example.org"

        Returns:
            The service locator address
        """
        response = self.request("GET", web_server + "/assets/conf/chipster.yaml")
        conf = yaml.safe_load(self.handle_response(response))
        return conf["service-locator"]

    # sessions

    def get_sessions(self) -> List[Session]:
        sessions = self.get_json(self.get_session_db_uri() + "/sessions/", self.token)
        return [Session.model_validate(s) for s in sessions]

    def get_example_sessions(self, app: str) -> List[Session]:
        """List the example sessions of an app."""
        sessions = self.get_json(
            self.get_session_db_uri() + "/sessions?appId=" + app, self.token
        )
        return [Session.model_validate(s) for s in sessions]

    def get_session(self, session_id: str) -> Session:
        session = self.get_json(self.get_session_db_uri() + "/sessions/" + session_id, self.token)
        return Session.model_validate(session)

    def post_session(self, session: Union[Session, Dict[str, Any]]) -> str:
        """Create a session.

        Returns:
            Id of the new session
        """
        body = self.post_json(self.get_session_db_uri() + "/sessions/", self.token, session)
        return json.loads(body)["sessionId"]

    def delete_session(self, session_id: str) -> None:
        self.delete_with_token(self.get_session_db_uri() + "/sessions/" + session_id, self.token)

    def extract_session(self, session_id: str, dataset_id: str) -> str:
        """Ask the session worker to extract a zipped session dataset into the session."""
        return self.post_json(
            f"{self.get_session_worker_uri()}/sessions/{session_id}/datasets/{dataset_id}",
            self.token,
            None,
        )

    def package_session(self, session_id: str, file: str) -> None:
        """Download a session as a zip file, "-" writes to stdout."""
        self.get_to_file(f"{self.get_session_worker_uri()}/sessions/{session_id}", file)

    # datasets

    def get_datasets(self, session_id: str) -> List[Dataset]:
        datasets = self.get_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/datasets/", self.token
        )
        return [Dataset.model_validate(d) for d in datasets]

    def get_dataset(self, session_id: str, dataset_id: str) -> Dataset:
        dataset = self.get_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/datasets/{dataset_id}", self.token
        )
        return Dataset.model_validate(dataset)

    def post_dataset(self, session_id: str, dataset: Union[Dataset, Dict[str, Any]]) -> str:
        """Create a dataset.

        Returns:
            Id of the new dataset
        """
        body = self.post_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/datasets/", self.token, dataset
        )
        return json.loads(body)["datasetId"]

    def put_dataset(self, session_id: str, dataset: Dataset) -> None:
        self.put_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/datasets/{dataset.dataset_id}",
            self.token,
            dataset,
        )

    def delete_dataset(self, session_id: str, dataset_id: str) -> None:
        self.delete_with_token(
            f"{self.get_session_db_uri()}/sessions/{session_id}/datasets/{dataset_id}", self.token
        )

    # jobs

    def get_jobs(self, session_id: str) -> List[Job]:
        jobs = self.get_json(f"{self.get_session_db_uri()}/sessions/{session_id}/jobs/", self.token)
        return [Job.model_validate(j) for j in jobs]

    def get_job(self, session_id: str, job_id: str) -> Job:
        job = self.get_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/jobs/{job_id}", self.token
        )
        return Job.model_validate(job)

    def post_job(self, session_id: str, job: Union[Job, Dict[str, Any]]) -> str:
        """Create a job.

        Returns:
            Id of the new job
        """
        body = self.post_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/jobs/", self.token, job
        )
        return json.loads(body)["jobId"]

    def put_job(self, session_id: str, job: Job) -> None:
        self.put_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/jobs/{job.job_id}", self.token, job
        )

    def delete_job(self, session_id: str, job_id: str) -> None:
        self.delete_with_token(
            f"{self.get_session_db_uri()}/sessions/{session_id}/jobs/{job_id}", self.token
        )

    def cancel_job(self, session_id: str, job_id: str) -> None:
        """Cancel a job by setting its state to CANCELLED."""
        job = self.get_job(session_id, job_id)
        job.state = JobState.CANCELLED
        job.state_detail = ""
        self.put_job(session_id, job)

    # rules

    def get_rules(self, session_id: str) -> List[Rule]:
        rules = self.get_json(f"{self.get_session_db_uri()}/sessions/{session_id}/rules", self.token)
        return [Rule.model_validate(r) for r in rules]

    def post_rule(self, session_id: str, username: str, read_write: bool) -> str:
        """Share a session with a user.

        Args:
            session_id: Session to share
            username: User to share the session with
            read_write: Whether the user may modify the session

        Returns:
            Id of the new rule
        """
        rule = Rule(username=username, read_write=read_write, session={"sessionId": session_id})
        body = self.post_json(
            f"{self.get_session_db_uri()}/sessions/{session_id}/rules", self.token, rule
        )
        return json.loads(body)["ruleId"]

    def delete_rule(self, session_id: str, rule_id: str) -> None:
        self.delete_with_token(
            f"{self.get_session_db_uri()}/sessions/{session_id}/rules/{rule_id}", self.token
        )

    # toolbox

    def get_tools(self) -> List[Module]:
        """List the toolbox modules, their categories and tools."""
        modules = self.get_json(self.get_toolbox_uri() + "/modules/", None)
        return [Module.model_validate(m) for m in modules]

    def get_tool(self, tool_id: str) -> Tool:
        """Get the SADL description of a tool."""
        toolbox_tool = self.get_json(self.get_toolbox_uri() + "/tools/" + tool_id, None)
        return Tool.model_validate(toolbox_tool["sadlDescription"])

    # files

    def download_file(self, session_id: str, dataset_id: str, file: str) -> None:
        """Download the contents of a dataset, "-" writes to stdout.

        Raises:
            HttpError: If the file broker responds with an error
        """
        self.get_to_file(
            f"{self.get_file_broker_uri()}/sessions/{session_id}/datasets/{dataset_id}", file
        )

    def upload_file(self, session_id: str, dataset_id: str, file: str) -> str:
        """Upload the contents of a dataset.

        The file is sent in chunks while it's read, so the upload proceeds at the
        speed the file broker accepts the data.

        Args:
            session_id: Session of the dataset
            dataset_id: Dataset to upload the contents for
            file: Path of the file, "-" reads stdin

        Returns:
            The dataset id

        Raises:
            HttpError: If the file broker responds with an error
        """
        uri = f"{self.get_file_broker_uri()}/sessions/{session_id}/datasets/{dataset_id}"
        headers = self.get_basic_auth_header("token", self.token)

        stream = self.get_read_stream(file)
        try:
            # stdin has no known length, send it chunked
            body = iter_chunks(stream) if file == STDIO else stream
            response = self.request("PUT", uri, headers, body)
        finally:
            if file != STDIO:
                stream.close()

        with response:
            self.check_for_error(response, uri)
        return dataset_id

    def get_file(self, session_id: str, dataset_id: str, max_length: int) -> str:
        """Get the beginning of a dataset as text.

        The range header is inclusive, so at most `max_length` + 1 bytes are returned.
        """
        # a 0-0 range would produce 416 Range Not Satisfiable
        if max_length == 0:
            return ""
        return self.get_with_token(
            f"{self.get_file_broker_uri()}/sessions/{session_id}/datasets/{dataset_id}",
            self.token,
            {"Range": f"bytes=0-{max_length}"},
        )

    def get_read_stream(self, file: str) -> BinaryIO:
        if file == STDIO:
            return sys.stdin.buffer
        return open(file, "rb")

    def get_write_stream(self, file: str) -> BinaryIO:
        if file == STDIO:
            return sys.stdout.buffer
        return open(file, "wb")

    def get_to_file(self, uri: str, file: str) -> None:
        """Stream the response body of a GET request to a file.

        Each chunk is written before the next one is read from the connection.

        Args:
            uri: Address to download
            file: Path of the file, "-" writes to stdout

        Raises:
            HttpError: If the response status is not successful
            ConnectionError: If the connection breaks, a partial file is removed
        """
        headers = self.get_basic_auth_header("token", self.token)
        response = self.request("GET", uri, headers, stream=True)

        with response:
            self.check_for_error(response, uri)
            stream = self.get_write_stream(file)
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        stream.write(chunk)
            except requests.exceptions.RequestException as e:
                if file != STDIO:
                    stream.close()
                    os.remove(file)
                raise ConnectionError(f"Download failed: {str(e)}") from e
            finally:
                if file == STDIO:
                    stream.flush()
                else:
                    stream.close()

    # requests

    def request(
        self,
        method: str,
        uri: str,
        headers: Optional[Headers] = None,
        body: Any = None,
        stream: bool = False,
    ) -> requests.Response:
        """Send a request.

        Args:
            method: HTTP method
            uri: Address
            headers: Request headers
            body: Request body, a string, bytes, a file or an iterator of bytes
            stream: Don't read the response body before returning

        Returns:
            The response, whatever its status

        Raises:
            TimeoutError: If the request times out
            ConnectionError: If the connection fails
        """
        try:
            return self.session.request(
                method, uri, headers=headers, data=body, stream=stream, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            raise TimeoutError(f"Request timed out: {method} {uri}")
        except requests.exceptions.ConnectionError as e:
            raise ConnectionError(f"Connection failed: {str(e)}")

    def get(self, uri: str, headers: Optional[Headers] = None) -> str:
        log.debug("get() %s", uri)
        return self.handle_response(self.request("GET", uri, headers))

    def post(self, uri: str, headers: Optional[Headers] = None, body: Any = None) -> str:
        log.debug("post() %s", uri)
        return self.handle_response(self.request("POST", uri, headers, body))

    def put(self, uri: str, headers: Optional[Headers] = None, body: Any = None) -> str:
        log.debug("put() %s", uri)
        return self.handle_response(self.request("PUT", uri, headers, body))

    def delete(self, uri: str, headers: Optional[Headers] = None) -> str:
        log.debug("delete() %s", uri)
        return self.handle_response(self.request("DELETE", uri, headers))

    def get_with_token(
        self, uri: str, token: Optional[str], headers: Optional[Headers] = None
    ) -> str:
        """GET with the token as Basic auth password, without auth if `token` is empty."""
        if token:
            return self.get(uri, self.get_basic_auth_header("token", token, headers))
        return self.get(uri, headers)

    def get_json(self, uri: str, token: Optional[str]) -> Any:
        return json.loads(self.get_with_token(uri, token))

    def post_json(self, uri: str, token: Optional[str], data: Any) -> str:
        headers = self.get_basic_auth_header("token", token)
        headers["Content-Type"] = "application/json"
        return self.post(uri, headers, json.dumps(self._to_json(data)))

    def put_json(self, uri: str, token: Optional[str], data: Any) -> str:
        headers = self.get_basic_auth_header("token", token)
        headers["Content-Type"] = "application/json"
        return self.put(uri, headers, json.dumps(self._to_json(data)))

    def delete_with_token(self, uri: str, token: Optional[str]) -> str:
        return self.delete(uri, self.get_basic_auth_header("token", token))

    @staticmethod
    def _to_json(data: Any) -> Any:
        if isinstance(data, ChipsterModel):
            return data.to_dict()
        return data

    # responses

    def handle_response(self, response: requests.Response) -> str:
        """Return the body of a successful response.

        Args:
            response: HTTP response

        Returns:
            The response body as text

        Raises:
            HttpError: For 4xx responses, a subclass for the common codes
            InternalServerError: For any other unsuccessful response
        """
        status_code = response.status_code
        if 200 <= status_code <= 299:
            text = self.response_text(response)
            log.debug("response %s", text)
            return text

        log.debug("error %s %s %s", status_code, response.reason, self.response_text(response))
        if 400 <= status_code <= 499:
            raise self.response_to_error(response)
        raise InternalServerError(
            f"request {response.request.method} {response.request.url} failed",
            status_code=status_code,
        )

    @staticmethod
    def response_text(response: requests.Response) -> str:
        """Decode the response body, as UTF-8 when the server doesn't name a charset."""
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = "utf-8"
        return response.text

    def check_for_error(self, response: requests.Response, uri: Optional[str] = None) -> None:
        """Raise if a streamed response is not successful.

        The error body is read in full and included in the error.

        Raises:
            HttpError: If the status is 300 or above
        """
        if response.status_code >= 300:
            raise self.response_to_error(response, uri=uri)

    def response_to_error(
        self, response: requests.Response, body: Optional[str] = None, uri: Optional[str] = None
    ) -> HttpError:
        """Convert an error response to an HttpError.

        The message has the form "<status> - <reason> (<body>) <uri>".
        """
        if body is None:
            body = self.response_text(response)
        if uri is None:
            uri = response.url
        status_code = response.status_code
        error_class = HTTP_ERRORS.get(status_code, HttpError)
        message = f"{status_code} - {response.reason} ({body}) {uri}"
        return error_class(
            message,
            status_code=status_code,
            reason=response.reason,
            body=body,
            uri=uri,
            response=response,
        )

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> "RestClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
