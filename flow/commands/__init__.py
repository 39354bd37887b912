# Import all command modules to ensure commands are registered.

import flow.commands.general_commands  # noqa: F401
import flow.commands.port_commands  # noqa: F401
