"""Constants for the MariaDB Operator."""

# API Group
API_GROUP = "k8s.mariadb.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_MARIADB = "MariaDB"
KIND_MAXSCALE = "MaxScale"
KIND_GRANT = "Grant"
KIND_USER = "User"
KIND_SECRET = "Secret"
KIND_CONFIG_MAP = "ConfigMap"

# Labels
LABEL_WATCH = f"{API_GROUP}/watch"
LABEL_APP_NAME = "app.kubernetes.io/name"
LABEL_APP_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"

# Annotations
ANNOTATION_WATCHED_RESOURCE = f"{API_GROUP}/watched-resource"
ANNOTATION_REFERENCES_HASH = f"{API_GROUP}/references-hash"

# Finalizers
GRANT_FINALIZER = f"grant.{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "mariadb-operator"

# Field paths indexed on MariaDB resources
MARIADB_MY_CNF_CONFIG_MAP_FIELD_PATH = ".spec.myCnfConfigMapKeyRef.name"
MARIADB_METRICS_PASSWORD_SECRET_FIELD_PATH = ".spec.metrics.passwordSecretKeyRef"
MARIADB_TLS_SERVER_CA_SECRET_FIELD_PATH = ".spec.tls.serverCASecretRef"
MARIADB_TLS_SERVER_CERT_SECRET_FIELD_PATH = ".spec.tls.serverCertSecretRef"
MARIADB_TLS_CLIENT_CA_SECRET_FIELD_PATH = ".spec.tls.clientCASecretRef"
MARIADB_TLS_CLIENT_CERT_SECRET_FIELD_PATH = ".spec.tls.clientCertSecretRef"

# Field paths indexed on MaxScale resources
MAXSCALE_METRICS_PASSWORD_SECRET_FIELD_PATH = ".spec.auth.metricsPasswordSecretKeyRef.name"

# Exporter
METRICS_PORT_NAME = "metrics"
EXPORTER_CONTAINER_NAME = "exporter"
EXPORTER_CONFIG_VOLUME = "config"
EXPORTER_CONFIG_MOUNT_PATH = "/etc/config/"
DEFAULT_EXPORTER_IMAGE = "prom/mysqld-exporter:v0.15.1"
DEFAULT_MAXSCALE_EXPORTER_IMAGE = "docker-registry2.mariadb.com/mariadb/maxscale-prometheus-exporter-ubi:v0.0.1"
DEFAULT_EXPORTER_PORT = 9104
DEFAULT_MAXSCALE_EXPORTER_PORT = 9105

# Database
DEFAULT_MARIADB_PORT = 3306
DEFAULT_GRANT_HOST = "%"
ROOT_USER = "root"

# Condition Types
COND_READY = "Ready"
COND_MARIADB_NOT_READY = "MariaDBNotReady"
COND_USER_NOT_FOUND = "UserNotFound"
COND_GRANT_FAILED = "GrantFailed"
COND_REVOKE_FAILED = "RevokeFailed"
COND_REFERENCES_RESOLVED = "ReferencesResolved"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_GRANT_APPLIED = "GrantApplied"
EVENT_REASON_GRANT_REVOKED = "GrantRevoked"
EVENT_REASON_REVOKE_FAILED = "RevokeFailed"
EVENT_REASON_FINALIZER_REMOVED = "FinalizerRemoved"
EVENT_REASON_EXPORTER_APPLIED = "ExporterApplied"
