"""Collection and reporting of a Kubernetes cluster inventory."""