from .output_logger import OutputLogger

LOGGER_NAME = "bcurl"

logger = OutputLogger(LOGGER_NAME)


def init_logger(options):
    global logger
    if options.custom_logger is not None:
        logger = options.custom_logger
    elif options.output_logger_level is not None:
        logger.set_log_level(options.output_logger_level)
