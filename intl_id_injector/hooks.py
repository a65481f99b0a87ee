app_name = "intl_id_injector"
app_title = "Intl Id Injector"
app_description = "Injects content-derived ids into react-intl / FormatJS message declarations"

app_license = "mit"


# Markup components whose attributes form a message record
component_names = ["FormattedMessage", "FormattedHTMLMessage"]

# Calls whose first argument is a message record or a keyed set of records
function_names = ["defineMessages", "formatMessage"]

# Narrower variant: defineMessages is the only recognized call
define_only_function_names = ["defineMessages"]

# Pass instantiated by the command-line tool
transformer = "intl_id_injector.transformer.FormatJsTransformer"

# Default config file looked up in the working directory
config_file = "intl_ids.json"

# Files picked up under a --target directory
include_exts = [".ast.json"]

# Never descend into these while scanning a --target directory
default_ignores = [
    "**/node_modules/**",
    "**/dist/**",
    "**/.git/**",
    "**/.cache/**",
    "**/build/**",
]
