
from eth_sniper.utils.logger import logger_manager, log_function

# Re-exported so modules import logging helpers from one place
log_function = log_function

# Logger for the entry point; modules create their own with __name__
logger = logger_manager.setup_logger("eth_sniper")
