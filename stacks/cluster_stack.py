"""
ECS Cluster Stack

Network and ECS cluster infrastructure for container workloads built by the
automation stack: a VPC spread over a configurable number of availability
zones, an ECS cluster, and an EC2 auto scaling group in the public subnets
providing the cluster's capacity.
"""

from aws_cdk import (
    CfnOutput,
    Stack,
    Tags,
    aws_autoscaling as autoscaling,
    aws_ec2 as ec2,
    aws_ecs as ecs,
)
from constructs import Construct


class EcsClusterStack(Stack):
    """
    ECS cluster on EC2 capacity

    Outputs the VPC id, the private and public subnet ids, the security
    groups of the cluster capacity and the cluster ARN so other stacks or
    tooling can place services on the cluster.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        prefix: str = "infratest",
        number_of_availability_zones: int = 2,
        instance_type: str = "t2.small",
        min_capacity: int = 10,
        **kwargs
    ) -> None:
        """
        Initialize the ECS Cluster Stack

        Args:
            scope: The scope in which to define this construct
            construct_id: The scoped construct ID
            prefix: Prefix for resource names
            number_of_availability_zones: Availability zones the VPC spans
            instance_type: EC2 instance type of the cluster capacity
            min_capacity: Minimum number of container instances
            **kwargs: Additional stack arguments
        """
        super().__init__(scope, construct_id, **kwargs)

        self.prefix = prefix

        self.vpc = ec2.Vpc(
            self,
            "Vpc",
            vpc_name=f"{prefix}-net",
            max_azs=number_of_availability_zones,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=24,
                ),
                ec2.SubnetConfiguration(
                    name="private",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=24,
                ),
            ],
        )

        self.cluster = ecs.Cluster(
            self,
            "Cluster",
            cluster_name=prefix,
            vpc=self.vpc,
        )

        self.auto_scaling_group = self._create_capacity(instance_type, min_capacity)

        self._create_outputs()

        Tags.of(self).add("Cluster", prefix)

    def _create_capacity(self, instance_type: str, min_capacity: int) -> autoscaling.AutoScalingGroup:
        """Add EC2 container instances in the public subnets"""
        return self.cluster.add_capacity(
            "DefaultAutoScalingGroup",
            instance_type=ec2.InstanceType(instance_type),
            min_capacity=min_capacity,
            max_capacity=max(min_capacity, 1),
            associate_public_ip_address=True,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        )

    def _create_outputs(self) -> None:
        """Export details of the network and cluster"""
        security_groups = self.auto_scaling_group.connections.security_groups

        CfnOutput(self, "VpcId", value=self.vpc.vpc_id)
        CfnOutput(
            self,
            "PrivateSubnetIds",
            value=",".join(subnet.subnet_id for subnet in self.vpc.private_subnets),
        )
        CfnOutput(
            self,
            "PublicSubnetIds",
            value=",".join(subnet.subnet_id for subnet in self.vpc.public_subnets),
        )
        CfnOutput(
            self,
            "SecurityGroupIds",
            value=",".join(group.security_group_id for group in security_groups),
        )
        CfnOutput(self, "EcsClusterArn", value=self.cluster.cluster_arn)
