"""Checks of a Kubernetes cluster against declared requirements."""