"""Static defaults shared by deploypipe services."""

PROJECT_NAME = "Subscription-Service"

MANIFEST_FILE = "package.json"
LOCK_FILE = "package-lock.json"
DEPENDENCIES_DIR = "node_modules"
INTEGRATION_TEST_DIR = "test/integration"
BUILD_DIR = "dist"
BACKUPS_DIR = "backups"
PROCESS_MANAGER_CONFIG = "ecosystem.config.js"
ENTRY_SCRIPT = "./dist/index.js"

REQUIRED_TOOLS = ("node", "npm")
PROCESS_MANAGER = "pm2"

INSTALL_COMMAND = ["npm", "ci"]
UNIT_TEST_COMMAND = ["npm", "test"]
INTEGRATION_TEST_COMMAND = ["npm", "run", "test:integration"]
LINT_COMMAND = ["npm", "run", "lint"]
BUILD_COMMAND = ["npm", "run", "build"]
DEV_SERVER_COMMAND = ["npm", "run", "dev"]

LOCAL_PORT = 3000
LOCAL_BASE_URL = f"http://localhost:{LOCAL_PORT}"
PRODUCTION_PORT = 3000
DEFAULT_REMOTE_PORT = 3001

HEALTH_CHECK_PATH = "/health"
HEALTH_CHECK_TIMEOUT_SECONDS = 300.0
HEALTH_CHECK_INTERVAL_SECONDS = 5.0
HEALTH_PROBE_TIMEOUT_SECONDS = 10.0
NOTIFICATION_TIMEOUT_SECONDS = 10.0

WEBHOOK_ENV_VAR = "SLACK_WEBHOOK_URL"
DEFAULT_CONFIG_FILE = ".deploypipe.yml"
