import inspect
import time
from datetime import datetime, timezone

from rich import print as _print

# DEBUG lines are only emitted once set_debug(True) has been called
_DEBUG_ENABLED = False


def set_debug(enabled: bool) -> None:
    """
    Enables or disables DEBUG output from Print.
    """
    global _DEBUG_ENABLED
    _DEBUG_ENABLED = bool(enabled)


def Print(logType: str, message: str) -> None:
    """
    Prints a log message with timestamp, function name, symbols wrapping the logType, and the message.
    """
    try:
        # Mapping of logType to symbols
        logTypeSymbols = {
            'SUCCESS': ('^^^', '^^^'),
            'FAILURE': ('###', '###'),
            'STATE': ('~~~', '~~~'),
            'INFO': ('---', '---'),
            'IMPORTANT': ('===', '==='),
            'CRITICAL': ('***', '***'),
            'EXCEPTION': ('!!!', '!!!'),
            'WARNING': ('(((', ')))'),
            'DEBUG': ('[[[', ']]]'),
            'ATTEMPT': ('???', '???'),
            'STARTING': ('>>>', '>>>'),
            'PROGRESS': ('vvv', 'vvv'),
            'COMPLETED': ('<<<', '<<<'),
            'HEADER': ('###', '###'),
        }

        # Mapping of logType to styles
        logTypeStyles = {
            'SUCCESS': 'green',
            'FAILURE': 'red bold',
            'STATE': 'cyan',
            'INFO': 'blue',
            'IMPORTANT': 'magenta',
            'CRITICAL': 'red bold',
            'EXCEPTION': 'red bold',
            'WARNING': 'yellow',
            'DEBUG': 'white',
            'ATTEMPT': 'cyan',
            'STARTING': 'green',
            'PROGRESS': 'blue',
            'COMPLETED': 'green',
            'HEADER': 'magenta bold',
        }

        logTypeUpper = logType.upper()
        if logTypeUpper == 'DEBUG' and not _DEBUG_ENABLED:
            return

        # Get current timestamp with microseconds
        current_time = time.time()
        timestamp = datetime.fromtimestamp(current_time, tz=timezone.utc).isoformat(timespec='microseconds') + 'Z'

        # Get symbols for the logType
        symbols = logTypeSymbols.get(logTypeUpper, ('', ''))
        before_symbol, after_symbol = symbols

        # Construct the formatted logType with symbols
        formattedLogType = f"{before_symbol} {logTypeUpper} {after_symbol}"

        # Apply style if available
        style = logTypeStyles.get(logTypeUpper, '')
        if style:
            formattedLogType = f"[{style}]{formattedLogType}[/{style}]"

        # Get the caller function name
        caller_frame = inspect.stack()[1]
        function_name = caller_frame.function

        # If the caller is Print, get the next frame
        if function_name == 'Print':
            caller_frame = inspect.stack()[2]
            function_name = caller_frame.function

        # Pad the function name for alignment (optional)
        functionNamePadding = 40
        paddedFunctionName = function_name.ljust(functionNamePadding)

        # Message text may contain square brackets (e.g. colors), escape them for rich markup
        safe_message = str(message).replace('[', r'\[')

        # Construct the output line
        output_line = f"{timestamp} {formattedLogType} {paddedFunctionName} {safe_message}"

        # Print the output using rich
        _print(output_line)

    except Exception as e:
        error_message = f"Something went wrong when attempting to print.\nError: {e}"
        print(error_message)
