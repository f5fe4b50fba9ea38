from graphql import (
    GraphQLArgument,
    GraphQLField,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
)


def resolve_test(root, info, who=None):
    return "Hello " + (who or "World")


def resolve_write_test(root, info):
    return {}


QueryRootType = GraphQLObjectType(
    name="QueryRoot",
    fields={
        "test": GraphQLField(
            GraphQLString,
            args={"who": GraphQLArgument(GraphQLString)},
            resolve=resolve_test,
        )
    },
)

MutationRootType = GraphQLObjectType(
    name="MutationRoot",
    fields={"writeTest": GraphQLField(QueryRootType, resolve=resolve_write_test)},
)

DemoSchema = GraphQLSchema(query=QueryRootType, mutation=MutationRootType)
