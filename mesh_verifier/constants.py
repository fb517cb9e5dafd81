# /*
# Copyright 2026 The Mesh Verifier Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Default values, well-known phases, selectors and manifest paths."""

from __future__ import annotations

# -- Poller defaults --
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_POLL_TIMEOUT_SECONDS = 600.0

# -- Remote exec defaults --
DEFAULT_EXEC_MAX_ATTEMPTS = 3
DEFAULT_EXEC_BACKOFF_SECONDS = 5.0
DEFAULT_EXEC_TIMEOUT_SECONDS = 30.0
DEFAULT_EXEC_CONTAINER = "sleep"

# -- HTTP probe defaults --
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_EXPECTED_STATUS = 200

# -- Well-known phases and statuses --
POD_PHASE_RUNNING = "Running"
CSV_PHASE_SUCCEEDED = "Succeeded"
EXEC_STATUS_SUCCESS = "Success"

# -- Operator status conditions --
OPERATOR_CONDITIONS_HEALTHY = {
    "Available": "True",
    "Degraded": "False",
    "Progressing": "False",
}
CERT_MANAGER_OPERATOR_NAME = "cluster"
CERT_MANAGER_CONTROLLERS = (
    "cert-manager-controller-deployment",
    "cert-manager-webhook-deployment",
    "cert-manager-cainjector-deployment",
)

# -- Namespaces --
NS_ISTIO_SYSTEM = "istio-system"
NS_OPENSHIFT_OPERATORS = "openshift-operators"

# -- Subscriptions and routes --
DEFAULT_MESH_SUBSCRIPTION = "servicemeshoperator"
INGRESS_GATEWAY_ROUTE = "istio-ingressgateway"

# -- Label selectors --
SELECTOR_INGRESS_GATEWAY = "app=istio-ingressgateway"
SELECTOR_EGRESS_GATEWAY = "app=istio-egressgateway"
SELECTOR_CONTROL_PLANE = "app=istiod"
SELECTOR_SLEEP = "app=sleep"
SELECTOR_HTTPBIN = "app=httpbin"

# -- Traffic probes --
HTTPBIN_SERVICE = "httpbin"
HTTPBIN_PORT = 8000
HTTPBIN_PATH = "/ip"
INGRESS_PROBE_PATH = "/headers"

# -- Relative manifest paths --
REL_ISTIO_SUBSCRIPTION = "istio/istio-subscription.yaml"
REL_SELF_SIGNED_ISSUER = "self_signed/cluster_issuer.yaml"
REL_SELF_SIGNED_CERTIFICATE = "self_signed/certificate.yaml"
REL_ISTIO_ISSUER = "istio/istio-issuer.yaml"
REL_ISTIO_SMCP = "istio/istio-smcp.yaml"
REL_ISTIO_SERVICE_ROLE = "istio/istio-servicerole.yaml"
REL_HTTPBIN_MANIFESTS = (
    "istio/http-bin/service-account.yaml",
    "istio/http-bin/service.yaml",
    "istio/http-bin/deployment.yaml",
)
REL_SLEEP_MANIFESTS = (
    "istio/sleep/service-account.yaml",
    "istio/sleep/service.yaml",
    "istio/sleep/deployment.yaml",
)
REL_HTTPBIN_GATEWAY = "istio/http-bin/gateway.yaml"
REL_HTTPBIN_VIRTUAL_SERVICE = "istio/http-bin/virtual-service.yaml"
