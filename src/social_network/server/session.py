"""Per-connection session: authentication gate and command dispatch."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from social_network.containers import AppContainer
from social_network.domain.errors import (
    AuthorizationDenied,
    Conflict,
    GraphInconsistency,
    NotFound,
    ProtocolViolation,
    SequencingError,
    SocialNetworkError,
)
from social_network.domain.notifications import NotificationStatus, NotificationType
from social_network.domain.sessions import SessionPhase, SessionState
from social_network.protocol.commands import (
    PLAIN_ERROR,
    Command,
    parse_command_line,
    split_parameters,
)
from social_network.protocol.framing import ConnectionClosed, LineChannel
from social_network.protocol.handshake import (
    HANDSHAKE_INIT,
    SYN_ACK,
    TRANSFER_READY,
    TokenIssuer,
    parse_ack,
    parse_download_request,
)
from social_network.protocol.transfer import ChunkSender, is_transfer_ack
from social_network.services.language import matches_language
from social_network.services.user_settings import parse_language

_logger = logging.getLogger(__name__)

CONTINUE_READING = "continue_reading"
END_OF_NOTIFICATIONS = "END_OF_NOTIFICATIONS"
NO_NOTIFICATIONS = "No notifications."
READY_FOR_PHOTO = "READY_FOR_PHOTO"
START_SENDING = "START_SENDING"
PROFILE_START = "PROFILE_START"
PROFILE_END = "PROFILE_END"
PHOTO_DETAILS_END = "PHOTO_DETAILS_END"
ENTRY_SEPARATOR = "##ENTRIES##"
LINE_SEPARATOR = "##NEWLINE##"

_INVALID_IDENTITY_CHARS = frozenset(":/\\")


def validate_identity(raw: str) -> str:
    """Return a usable identity or raise ProtocolViolation."""
    identity = raw.strip()
    if (
        not identity
        or any(char.isspace() for char in identity)
        or _INVALID_IDENTITY_CHARS.intersection(identity)
        or identity in {".", ".."}
    ):
        raise ProtocolViolation("Invalid client ID", target=identity or None)
    return identity


@dataclass
class SessionHandler:
    """Runs one connection from first line to close.

    Commands are handled strictly one at a time. Handlers raise
    SocialNetworkError subclasses; the dispatch loop reports them on the
    connection and keeps going.
    """

    channel: LineChannel
    container: AppContainer
    peer_address: str = "unknown"
    peer_port: int = 0
    state: SessionState = field(default_factory=SessionState)
    tokens: TokenIssuer = field(default_factory=TokenIssuer)
    _handlers: dict[Command, Callable[[str], None]] = field(
        init=False, repr=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self._handlers = {
            Command.LOGIN: self._login,
            Command.SIGNUP: self._signup,
            Command.EXIT: self._exit,
            Command.POST: self._post,
            Command.FOLLOW_REQUEST: self._follow_request,
            Command.FOLLOW_RESPONSE: self._follow_response,
            Command.UNFOLLOW: self._unfollow,
            Command.ACCESS_PROFILE: self._access_profile,
            Command.SEARCH: self._search,
            Command.GET_NOTIFICATIONS: self._get_notifications,
            Command.UPLOAD: self._upload,
            Command.DOWNLOAD: self._download,
            Command.DOWNLOAD_SYN: self._download_syn,
            Command.DOWNLOAD_ACK: self._download_ack,
            Command.REPOST: self._repost,
            Command.COMMENT: self._comment,
            Command.ASK_COMMENT: self._ask_comment,
            Command.APPROVE_COMMENT: self._approve_comment,
            Command.ASK_PHOTO: self._ask_photo,
            Command.PERMIT_PHOTO: self._permit_photo,
            Command.PHOTO_DETAILS: self._photo_details,
            Command.SET_LANGUAGE: self._set_language,
            Command.SYNC: self._sync,
        }

    @property
    def identity(self) -> str:
        return self.state.identity or ""

    def run(self) -> None:
        """Serve commands until exit, disconnect or an I/O failure."""
        try:
            while not self.closed:
                try:
                    line = self.channel.read_line()
                except ConnectionClosed:
                    _logger.info("Client %s disconnected", self.identity or "anonymous")
                    break
                self.handle_line(line)
        except OSError as exc:
            _logger.warning(
                "Connection error for %s: %s", self.identity or "anonymous", exc
            )
        except Exception:
            _logger.exception(
                "Unexpected error in session for %s", self.identity or "anonymous"
            )
        finally:
            self.close()

    @property
    def closed(self) -> bool:
        return self.state.phase is SessionPhase.CLOSED

    def close(self) -> None:
        if self.state.authenticated:
            self.container.catalog_service.unregister(
                self.identity, self.peer_address, self.peer_port
            )
        self.state.close()
        self.channel.close()

    def handle_line(self, line: str) -> None:
        """Dispatch one command line and write its reply."""
        if not line.strip():
            return
        if self.state.authenticated and is_transfer_ack(line):
            _logger.debug("Dropping late transfer acknowledgment %r", line.strip())
            return
        try:
            parsed = parse_command_line(line)
        except ProtocolViolation as exc:
            self._report(exc, None, PLAIN_ERROR)
            return

        command = Command.lookup(parsed.name)
        if not self.state.authenticated and (
            command is None or command.spec.requires_auth
        ):
            self.channel.write_line("Error: Please login or signup first")
            return
        if command is None:
            _logger.warning(
                "protocol_violation actor=%s command=%s: unknown command",
                self.identity,
                parsed.name,
            )
            self.channel.write_line("Error: Unknown command")
            return

        try:
            self._handlers[command](parsed.parameters)
        except SocialNetworkError as exc:
            self._report(exc, command, command.spec.error_prefix)

    def _report(
        self, exc: SocialNetworkError, command: Command | None, prefix: str
    ) -> None:
        _logger.warning(
            "%s actor=%s command=%s target=%s: %s",
            exc.kind,
            self.identity or "anonymous",
            command.spec.name if command else None,
            exc.target,
            exc.message,
        )
        self.channel.write_line(f"{prefix}{exc.message}")

    def _require_identity(self, raw: str) -> str:
        """Validate an identity parameter and require that it exists."""
        identity = validate_identity(raw)
        if not self.container.graph_service.exists(identity):
            raise NotFound(f"Client {identity} does not exist.", target=identity)
        return identity

    def _notify_followers(self, content: str) -> None:
        followers = self.container.graph_service.followers(self.identity)
        self.container.notification_service.fan_out(self.identity, followers, content)

    def _system_notice(self, receiver: str, content: str) -> None:
        self.container.notification_service.notify(
            self.identity, receiver, NotificationType.SYSTEM, content
        )

    # Authentication

    def _login(self, parameters: str) -> None:
        if self.state.authenticated:
            raise Conflict(f"Already logged in as client {self.identity}")
        identity = validate_identity(parameters)
        if not self.container.graph_service.exists(identity):
            raise NotFound("Client does not exist. Please signup first.", identity)
        language = self.container.user_settings_service.get_language(identity)
        self._authenticate(identity, language)
        self.channel.write_line(f"Welcome back, client {identity}")

    def _signup(self, parameters: str) -> None:
        if self.state.authenticated:
            raise Conflict(f"Already logged in as client {self.identity}")
        identity = validate_identity(parameters)
        if not self.container.graph_service.register(identity):
            raise Conflict(
                "Client ID already exists. Please choose another one or login.",
                identity,
            )
        self.container.user_settings_service.initialize(identity)
        self._authenticate(
            identity, self.container.user_settings_service.get_language(identity)
        )
        self.channel.write_line(f"Welcome client {identity}")

    def _authenticate(self, identity: str, language: str) -> None:
        self.state.authenticate(identity, language)
        self.container.catalog_service.register(
            identity, self.peer_address, self.peer_port
        )
        _logger.info("Client %s authenticated", identity)

    def _exit(self, parameters: str) -> None:
        _logger.info("Client %s sent exit", self.identity or "anonymous")
        self.close()

    # Posts and the follow graph

    def _post(self, parameters: str) -> None:
        content = parameters.strip()
        if not content:
            raise ProtocolViolation("Post content cannot be empty")
        entry = self.container.profile_service.record(self.identity, content)
        self.channel.write_line(
            f"Post created successfully! Your profile has been updated with: {entry}"
        )
        self._notify_followers(f"{self.identity} posted: {entry}")

    def _follow_request(self, parameters: str) -> None:
        target = self._require_identity(parameters)
        if target == self.identity:
            raise Conflict("You cannot follow yourself.", target)
        if self.container.graph_service.is_following(self.identity, target):
            raise Conflict(f"You are already following client {target}.", target)
        self.container.notification_service.send_request(
            self.identity,
            target,
            NotificationType.FOLLOW_REQUEST,
            f"{self.identity} wants to follow you.",
        )
        self.channel.write_line(
            f"Follow request sent to client {target}. Waiting for their response."
        )

    def _follow_response(self, parameters: str) -> None:
        requester, choice = split_parameters(parameters, 2, "senderID:choice")
        if choice not in {"1", "2", "3"}:
            raise ProtocolViolation("Invalid choice. Expected 1, 2, or 3.")
        status = NotificationStatus.ACCEPTED
        if choice == "3":
            status = NotificationStatus.REJECTED
        self.container.notification_service.resolve(
            requester, self.identity, NotificationType.FOLLOW_REQUEST, status
        )

        if choice == "1":
            self.container.graph_service.follow_back(requester, self.identity)
            self._system_notice(
                requester,
                f"{self.identity} accepted your follow request "
                "and is now following you back.",
            )
            reply = f"You are now following {requester} and they are following you."
        elif choice == "2":
            if not self.container.graph_service.create_edge(requester, self.identity):
                raise GraphInconsistency(
                    "Error creating follow relationship. Please try again.", requester
                )
            self._system_notice(
                requester, f"{self.identity} accepted your follow request."
            )
            reply = f"You accepted the follow request from {requester}"
        else:
            self._system_notice(
                requester, f"{self.identity} rejected your follow request."
            )
            reply = f"You rejected the follow request from {requester}"
        _logger.info("Client %s answered %s for %s", self.identity, choice, requester)
        self.channel.write_line(reply)

    def _unfollow(self, parameters: str) -> None:
        target = self._require_identity(parameters)
        if not self.container.graph_service.remove_edge(self.identity, target):
            raise NotFound(f"You are not following client {target}.", target)
        self._system_notice(target, f"{self.identity} has unfollowed you.")
        self.channel.write_line(f"You have unfollowed client {target}.")

    def _access_profile(self, parameters: str) -> None:
        target = self._require_identity(parameters)
        own = target == self.identity
        if not own and not self.container.graph_service.is_following(
            self.identity, target
        ):
            denial = AuthorizationDenied(
                f"You do not have permission to access the profile of client "
                f"{target}. You must follow them first.",
                target,
            )
            _logger.warning(
                "%s actor=%s command=%s target=%s: %s",
                denial.kind,
                self.identity,
                Command.ACCESS_PROFILE.spec.name,
                target,
                denial.message,
            )
            self.channel.write_line(f"DENIED:{denial.message}")
            self._system_notice(
                target,
                f"{self.identity} attempted to view your profile "
                "but was denied (not following you).",
            )
            return

        self.channel.write_line(PROFILE_START)
        for line in self.container.profile_service.timeline(target):
            self.channel.write_line(line)
        self.channel.write_line(PROFILE_END)
        if not own:
            self._system_notice(target, f"{self.identity} viewed your profile.")

    def _search(self, parameters: str) -> None:
        file_name, raw_language = split_parameters(
            parameters, 2, "fileName[:language]", minimum=1
        )
        language = parse_language(raw_language) if raw_language else None
        following = self.container.graph_service.following(self.identity)
        if not following:
            self.channel.write_line(
                "RESULT:You are not following any users. No search results."
            )
            return
        owners = self.container.photo_service.owners_with(
            file_name, following, language
        )
        if not owners:
            self.channel.write_line(
                "RESULT:No matching photos found in your social graph."
            )
            return
        entries = LINE_SEPARATOR.join(
            f"{position}. Client ID: {owner} - File: {file_name}"
            for position, owner in enumerate(owners, start=1)
        )
        self.channel.write_line(
            f"RESULT:{len(owners)} result(s) found:{ENTRY_SEPARATOR}{entries}"
        )

    # Notifications

    def _get_notifications(self, parameters: str) -> None:
        notifications = self.container.notification_service
        entries = notifications.active(self.identity)
        if not entries:
            self.channel.write_line(NO_NOTIFICATIONS)
            return

        first, rest = entries[0], entries[1:]
        self.channel.write_line(first.render())
        reply = self.channel.read_line()
        if reply.strip() != CONTINUE_READING:
            notifications.mark_read(self.identity, [first.id])
            self.handle_line(reply)
            return
        for entry in rest:
            self.channel.write_line(entry.render())
        self.channel.write_line(END_OF_NOTIFICATIONS)
        notifications.mark_read(self.identity, [entry.id for entry in entries])

    # Photos

    def _upload(self, parameters: str) -> None:
        photos = self.container.photo_service
        file_name, description_en, description_gr = split_parameters(
            parameters, 3, "filename:description_en[:description_gr]", minimum=1
        )
        file_name, descriptions = photos.prepare_upload(
            file_name, {"en": description_en, "gr": description_gr}
        )
        self.channel.write_line(READY_FOR_PHOTO)
        size = photos.check_size(self.channel.read_line())
        self.channel.write_line(START_SENDING)
        data = self.channel.read_bytes(size)
        photos.store(self.identity, file_name, data, descriptions)
        entry = self.container.profile_service.record(
            self.identity, f"{self.identity} posted {file_name}"
        )
        self.channel.write_line(
            "SUCCESS:Photo and description uploaded successfully. Profile updated."
        )
        self._notify_followers(f"{self.identity} posted: {entry}")

    def _download(self, parameters: str) -> None:
        target = parse_download_request(parameters)
        source = target.source_id
        if not self.container.graph_service.exists(source):
            raise NotFound(f"Source client {source} does not exist", source)
        if not self.container.graph_service.is_following(self.identity, source):
            self._system_notice(
                source,
                f"{self.identity} attempted to download {target.file_name} "
                "but is not following you.",
            )
            raise AuthorizationDenied(f"You are not following client {source}", source)
        self.container.photo_service.find(source, target.file_name)
        if (
            self.container.download_access == "grant"
            and not self.container.permission_service.check_and_consume(
                source, self.identity, target.file_name
            )
        ):
            raise AuthorizationDenied(
                f"No permission to download {target.file_name} from client "
                f"{source}. Use ask_photo first.",
                target.file_name,
            )
        self.state.request_download(target)
        _logger.info(
            "Client %s authorized to download %s from %s",
            self.identity,
            target.file_name,
            source,
        )
        self.channel.write_line(HANDSHAKE_INIT)

    def _download_syn(self, parameters: str) -> None:
        if parameters.strip() != self.identity:
            raise SequencingError("Client ID mismatch", parameters.strip() or None)
        token = self.tokens.issue()
        self.state.open_handshake(token)
        self.channel.write_line(f"{SYN_ACK}:{token}")

    def _download_ack(self, parameters: str) -> None:
        token, requested = parse_ack(parameters)
        target = self.state.complete_handshake(token, requested)
        record = self.container.photo_service.find(target.source_id, target.file_name)
        self.channel.write_line(TRANSFER_READY)

        settings = self.container.settings
        sender = ChunkSender(
            self.channel,
            chunk_count=settings.chunk_count,
            ack_timeout=settings.ack_timeout_seconds,
            max_attempts=settings.max_chunk_attempts,
        )
        sender.send(record.data, record.description_for(self.state.language))
        self.container.profile_service.record(
            self.identity,
            f"{self.identity} downloaded {target.file_name} from {target.source_id}",
        )
        _logger.info(
            "Client %s downloaded %s from %s",
            self.identity,
            target.file_name,
            target.source_id,
        )

    def _ask_photo(self, parameters: str) -> None:
        owner, file_name = split_parameters(parameters, 2, "ownerID:fileName")
        owner = self._require_identity(owner)
        if owner == self.identity:
            raise Conflict("You already own this photo.", file_name)
        if not self.container.graph_service.is_following(self.identity, owner):
            raise AuthorizationDenied(
                f"You must follow {owner} to request their photos.", owner
            )
        self.container.photo_service.find(owner, file_name)
        self.container.notification_service.send_request(
            self.identity,
            owner,
            NotificationType.PHOTO_REQUEST,
            f"{self.identity} wants to download {file_name}.",
            subject=file_name,
        )
        self.channel.write_line(f"SUCCESS:Photo request sent to {owner}.")

    def _permit_photo(self, parameters: str) -> None:
        requester, file_name, answer = split_parameters(
            parameters, 3, "requesterID:fileName:yes|no"
        )
        answer = answer.lower()
        if answer not in {"yes", "no"}:
            raise ProtocolViolation("Invalid response. Use 'yes' or 'no'")
        approved = answer == "yes"
        status = NotificationStatus.REJECTED
        if approved:
            status = NotificationStatus.ACCEPTED
        self.container.notification_service.resolve(
            requester,
            self.identity,
            NotificationType.PHOTO_REQUEST,
            status,
            subject=file_name,
        )
        if approved:
            self.container.permission_service.grant(
                self.identity, requester, file_name
            )
            content = f"{self.identity} granted your request to download {file_name}."
        else:
            content = f"{self.identity} denied your request to download {file_name}."
        self.container.notification_service.notify(
            self.identity,
            requester,
            NotificationType.PHOTO_RESPONSE,
            content,
            subject=file_name,
        )
        self.channel.write_line(
            f"SUCCESS:Photo request from {requester} for {file_name} "
            f"was {status.value}."
        )

    def _photo_details(self, parameters: str) -> None:
        file_name, owner = split_parameters(parameters, 2, "fileName:ownerID")
        owner = self._require_identity(owner)
        own = owner == self.identity
        if not own and not self.container.graph_service.is_following(
            self.identity, owner
        ):
            raise AuthorizationDenied(f"You are not following client {owner}", owner)
        record = self.container.photo_service.find(owner, file_name)
        languages = ",".join(
            language for language, text in record.descriptions.items() if text
        )
        lines = [
            f"PHOTO_DETAILS:{file_name}:{owner}",
            f"SIZE:{record.size}",
            f"CHUNKS:{self.container.settings.chunk_count}",
            f"LANGUAGES:{languages}",
            f"DESCRIPTION:{record.description_for(self.state.language) or ''}",
            f"ACCESS:{self._access_state(owner, file_name)}",
            PHOTO_DETAILS_END,
        ]
        for line in lines:
            self.channel.write_line(line)

    def _access_state(self, owner: str, file_name: str) -> str:
        if owner == self.identity:
            return "owner"
        if self.container.download_access == "follow":
            return "follow"
        if self.container.permission_service.check(owner, self.identity, file_name):
            return "granted"
        if self.container.notification_service.has_pending(
            self.identity, owner, NotificationType.PHOTO_REQUEST, subject=file_name
        ):
            return "pending"
        return "none"

    # Reposts and comments

    def _repost(self, parameters: str) -> None:
        original_sender, content, comment = split_parameters(
            parameters, 3, "originalSenderID:postContent:comment", minimum=2
        )
        profiles = self.container.profile_service
        profiles.record_other(
            self.identity, f"REPOST from {original_sender}: {content}"
        )
        if comment:
            profiles.record_other(self.identity, f"COMMENT: {comment}")
        notice = f"{self.identity} reposted from {original_sender}: {content}"
        if comment:
            notice += f" with comment: {comment}"
        self._notify_followers(notice)
        self.channel.write_line("SUCCESS:Repost created successfully!")

    def _comment(self, parameters: str) -> None:
        target, text = split_parameters(parameters, 2, "targetID:comment")
        target = self._require_identity(target)
        remark = f"{self.identity} commented on {target}'s post: {text}"
        entry = self.container.profile_service.record(self.identity, remark)
        self.channel.write_line(f"COMMENT_POSTED:{entry}")
        graph = self.container.graph_service
        audience = [
            follower
            for follower in dict.fromkeys(
                [*graph.followers(self.identity), *graph.followers(target)]
            )
            if follower != self.identity
        ]
        for follower in audience:
            self.container.profile_service.record_other(follower, remark)
        self.container.notification_service.fan_out(
            self.identity, audience, f"{self.identity} posted: {entry}"
        )

    def _ask_comment(self, parameters: str) -> None:
        target, text = split_parameters(parameters, 2, "targetID:comment")
        target = self._require_identity(target)
        if not self.container.graph_service.is_following(self.identity, target):
            raise AuthorizationDenied(
                f"You must follow {target} to comment on their posts.", target
            )
        self.container.notification_service.notify(
            self.identity,
            target,
            NotificationType.COMMENT_REQUEST,
            f"{self.identity} wants to post comment: {text}",
        )
        self.channel.write_line(f"Comment request sent to {target}.")

    def _approve_comment(self, parameters: str) -> None:
        requester, response, text = split_parameters(
            parameters, 3, "requestorID:response:comment", minimum=2
        )
        requester = self._require_identity(requester)
        approved = response.lower() == "yes" and matches_language(
            text, self.state.language
        )
        verdict = "approved" if approved else "rejected"
        self.container.notification_service.notify(
            self.identity,
            requester,
            NotificationType.COMMENT_RESPONSE,
            f"{self.identity} {verdict} your comment: {text}",
        )
        self.channel.write_line(f"Your response has been sent to {requester}.")

    # Settings

    def _set_language(self, parameters: str) -> None:
        language = self.container.user_settings_service.set_language(
            self.identity, parameters
        )
        self.state.language = language
        self.channel.write_line(f"SUCCESS:Language preference updated to {language}")

    def _sync(self, parameters: str) -> None:
        if parameters.strip() != self.identity:
            raise ProtocolViolation("Client ID mismatch", parameters.strip() or None)
        self.channel.write_line("Data synchronized successfully")
