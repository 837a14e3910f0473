"""
Unit tests for the EcsClusterStack.
"""

import json

import aws_cdk as cdk
from aws_cdk import assertions

from stacks.cluster_stack import EcsClusterStack


class TestEcsClusterStack:
    """Test suite for the EcsClusterStack class."""

    def setup_method(self):
        """Set up test fixtures before each test method."""
        self.app = cdk.App()
        self.stack = EcsClusterStack(
            self.app,
            "TestEcsCluster",
            prefix="infratest",
            number_of_availability_zones=2,
            instance_type="t2.small",
            min_capacity=10,
            env=cdk.Environment(account="123456789012", region="us-east-1"),
        )
        self.template = assertions.Template.from_stack(self.stack)

    def test_vpc_with_public_and_private_subnets(self):
        self.template.resource_count_is("AWS::EC2::VPC", 1)
        self.template.resource_count_is("AWS::EC2::Subnet", 4)
        self.template.has_resource_properties("AWS::EC2::Subnet", {"MapPublicIpOnLaunch": True})
        self.template.has_resource_properties("AWS::EC2::Subnet", {"MapPublicIpOnLaunch": False})

    def test_cluster_created(self):
        self.template.has_resource_properties("AWS::ECS::Cluster", {"ClusterName": "infratest"})

    def test_auto_scaling_group_capacity(self):
        self.template.has_resource_properties(
            "AWS::AutoScaling::AutoScalingGroup",
            {"MinSize": "10", "MaxSize": "10"},
        )

    def test_instances_get_public_addresses(self):
        rendered = json.dumps(self.template.to_json())

        assert '"AssociatePublicIpAddress": true' in rendered
        assert '"InstanceType": "t2.small"' in rendered

    def test_outputs(self):
        for name in ("VpcId", "PrivateSubnetIds", "PublicSubnetIds", "SecurityGroupIds", "EcsClusterArn"):
            self.template.has_output(name, {})
