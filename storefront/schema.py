import graphene

from shop.schema import ShopMutation, ShopQuery


# The Query class combines all fields from the shop app (ShopQuery)
class Query(ShopQuery, graphene.ObjectType):
    pass


# The Mutation class combines all mutation logic from the shop app (ShopMutation)
class Mutation(ShopMutation, graphene.ObjectType):
    pass


# Define the final schema used by the GraphQLView in urls.py
schema = graphene.Schema(query=Query, mutation=Mutation)
