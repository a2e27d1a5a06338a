from ddl_model import naming


def test_generated_names():
    assert naming.primary_key_constraint_name("Users", "Id") == "pk_Users_Id"
    assert naming.primary_key_constraint_name("OrderLines", "OrderId", "Line") == (
        "pk_OrderLines_OrderId_Line"
    )
    assert naming.default_constraint_name("Users", "Age") == "df_Users_Age"
    assert naming.check_constraint_name("Users", "Age") == "ck_Users_Age"
    assert naming.unique_constraint_name("Users", "Email") == "uc_Users_Email"
    assert naming.index_name("Users", "Email", "Age") == "ix_Users_Email_Age"
    assert naming.foreign_key_constraint_name("Orders", "UserId", "Users", "Id") == (
        "fk_Orders_UserId_Users_Id"
    )


def test_unsafe_characters_and_blank_segments_are_dropped():
    assert naming.index_name("User Profiles", "e-mail") == "ix_UserProfiles_email"
    assert naming.check_constraint_name("Users", "") == "ck_Users"


def test_to_alphanumeric():
    assert naming.to_alphanumeric("my.table-name!") == "mytablename"
    assert naming.to_alphanumeric("my_table", "_") == "my_table"
