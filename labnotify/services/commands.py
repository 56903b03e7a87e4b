"""Telegram chat commands for linking patients to the notification bot."""

from labnotify.clients.telegram import TelegramClient
from labnotify.exceptions import ConnectionUpdateError, DataStoreError
from labnotify.models.telegram import ProviderFailure, TelegramMessage, TelegramUpdate
from labnotify.services.connections import ConnectionManager
from labnotify.services.directory import PatientDirectory
from labnotify.utils.logging import get_logger
from labnotify.utils.phone import is_valid_start_phone, normalize_phone

logger = get_logger(__name__)

STATUS_NOTIFICATION_LIMIT = 10

COMMAND_MENU = (
    "I understand the following commands:\n\n"
    "/start +1234567890 - Connect your phone number\n"
    "/help - Show this help\n"
    "/status - Check your connection status\n"
    "/stop - Disconnect from notifications"
)

INVALID_PHONE = "❌ Invalid phone number format. Please use international format:\n\nExample: /start +251911234567"

PHONE_NOT_FOUND = (
    "❌ Phone number not found in our system.\n\n"
    "Please contact the hospital to register your phone number, or verify you entered it correctly."
)

CONNECT_FAILED = "❌ Failed to connect your account. Please try again later."
DISCONNECT_FAILED = "❌ Failed to disconnect. Please try again later."
STATUS_FAILED = "❌ Unable to check status. Please try again later."
GENERIC_FAILURE = "❌ An error occurred. Please try again later."

STATUS_NOT_CONNECTED = (
    "❌ You are not connected to any patient account.\n\nUse /start +your_phone_number to connect."
)
STOP_NOT_CONNECTED = "You are not connected to any account."

DISCONNECTED = (
    "✅ Successfully disconnected from notifications.\n\n"
    "You will no longer receive lab results here. Use /start +your_phone_number to reconnect anytime."
)


class ChatCommandInterpreter:
    """Handles inbound bot messages for one webhook call.

    Commands:
        /start <phone>  link the chat to the patient with that phone number
        /help           static help text
        /status         linked patient and recent delivery counts
        /stop           unlink the chat
        anything else   command menu
    """

    def __init__(
        self,
        directory: PatientDirectory,
        connections: ConnectionManager,
        telegram: TelegramClient,
        hospital_name: str = "Girum Hospital",
        hospital_contact: str = "+251-11-XXX-XXXX",
        country_code: str = "251",
        normalize_start_phone: bool = False,
    ):
        """Initialize the interpreter with its collaborators.

        Args:
            directory: Patient lookups
            connections: Link state transitions
            telegram: Client used to reply
            hospital_name: Name used in welcome and help text
            hospital_contact: Phone number shown in help text
            country_code: Calling code for normalization
            normalize_start_phone: Normalize the /start argument before lookup
        """
        self.directory = directory
        self.connections = connections
        self.telegram = telegram
        self.hospital_name = hospital_name
        self.hospital_contact = hospital_contact
        self.country_code = country_code
        self.normalize_start_phone = normalize_start_phone

    async def handle_update(self, update: TelegramUpdate) -> None:
        """Route a webhook update to its command handler.

        Updates without a text message are ignored. Store failures are
        answered in the chat and never raised.
        """
        message = update.message
        if message is None or not message.text:
            logger.debug(f"Ignoring update {update.update_id} without text")
            return

        text = message.text.strip()
        command, _, argument = text.partition(" ")
        command = command.split("@", 1)[0].lower()

        sender = message.from_user.id if message.from_user else None
        logger.info(f"Received {command!r} from user {sender} in chat {message.chat.id}")

        try:
            if command == "/start":
                await self._handle_start(message, argument.strip())
            elif command == "/help":
                await self._reply(message, self._help_text())
            elif command == "/status":
                await self._handle_status(message)
            elif command == "/stop":
                await self._handle_stop(message)
            else:
                await self._reply(message, COMMAND_MENU)
        except (DataStoreError, ConnectionUpdateError) as e:
            logger.error(f"{command} failed for chat {message.chat.id}: {e}", exc_info=True)
            await self._reply(message, GENERIC_FAILURE)

    async def _handle_start(self, message: TelegramMessage, argument: str) -> None:
        if not argument:
            await self._reply(message, self._welcome_text())
            return

        phone = argument.split()[0]
        if not is_valid_start_phone(phone):
            await self._reply(message, INVALID_PHONE)
            return

        lookup_phone = normalize_phone(phone, self.country_code) if self.normalize_start_phone else phone
        patient = await self.directory.find_by_phone(lookup_phone)
        if patient is None:
            await self._reply(message, PHONE_NOT_FOUND)
            return

        username = message.from_user.username if message.from_user else None
        try:
            await self.connections.connect(patient, message.chat.id, username)
        except ConnectionUpdateError:
            await self._reply(message, CONNECT_FAILED)
            return

        await self._reply(
            message,
            f"✅ Successfully connected!\n\n"
            f"Hello {patient.full_name}, you will now receive lab results and medical notifications here.\n\n"
            f"Use /help to see available commands.",
        )

    async def _handle_status(self, message: TelegramMessage) -> None:
        try:
            patient = await self.directory.find_by_chat_id(message.chat.id)
            if patient is None:
                await self._reply(message, STATUS_NOT_CONNECTED)
                return

            notifications = await self.directory.recent_notifications(patient, limit=STATUS_NOTIFICATION_LIMIT)
        except DataStoreError as e:
            logger.error(f"Status lookup failed for chat {message.chat.id}: {e}")
            await self._reply(message, STATUS_FAILED)
            return

        delivered = sum(1 for n in notifications if n.status == "delivered")
        connected_since = patient.updated_at.strftime("%Y-%m-%d") if patient.updated_at else "unknown"

        await self._reply(
            message,
            f"✅ *Connection Status*\n\n"
            f"*Patient:* {patient.full_name}\n"
            f"*Phone:* {patient.phone or 'not on file'}\n"
            f"*Status:* Connected\n"
            f"*Connected Since:* {connected_since}\n\n"
            f"*Notification Stats:*\n"
            f"📊 Total Received: {len(notifications)}\n"
            f"✅ Successfully Delivered: {delivered}\n\n"
            f"You will receive lab results and medical notifications here automatically.",
        )

    async def _handle_stop(self, message: TelegramMessage) -> None:
        patient = await self.directory.find_by_chat_id(message.chat.id)
        if patient is None:
            await self._reply(message, STOP_NOT_CONNECTED)
            return

        try:
            await self.connections.disconnect(patient)
        except ConnectionUpdateError:
            await self._reply(message, DISCONNECT_FAILED)
            return

        await self._reply(message, DISCONNECTED)

    async def _reply(self, message: TelegramMessage, text: str) -> None:
        result = await self.telegram.send_message(message.chat.id, text)
        if isinstance(result, ProviderFailure):
            logger.error(f"Failed to reply in chat {message.chat.id}: {result.description}")

    def _welcome_text(self) -> str:
        return (
            f"Welcome to {self.hospital_name} Lab Notification Bot! 🏥\n\n"
            f"To connect your account, please use:\n/start +your_phone_number\n\n"
            f"Example: /start +251911234567"
        )

    def _help_text(self) -> str:
        return (
            f"🏥 *{self.hospital_name} Lab Bot Help*\n\n"
            f"*Available Commands:*\n"
            f"/start +phone - Connect your phone number\n"
            f"/help - Show this help message\n"
            f"/status - Check your connection status\n"
            f"/stop - Disconnect from notifications\n\n"
            f"*About This Bot:*\n"
            f"This bot delivers your lab results and medical notifications securely. "
            f"Your data is protected and only you will receive your results.\n\n"
            f"*Need Help?*\n"
            f"Contact {self.hospital_name} at {self.hospital_contact}"
        )
