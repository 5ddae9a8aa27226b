APP_NAME = "stratum"
ENV_PREFIX = "STRATUM_CONFIG__"
ENV_NESTED_DELIMITER = "__"
